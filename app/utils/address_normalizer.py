import hashlib
import re

REGION_TOKENS = ("시", "구", "군")

_PARENTHETICAL = re.compile(r"\([^)]*\)|\[[^\]]*\]")
# "3층", "지하1층", "B1층", "1~2층", "101호", "101동", "B1"
_UNIT_SUFFIX = re.compile(
    r"(?:^|\s+)(?:지하\s*)?[A-Za-z]?\d+(?:\s*[~-]\s*\d+)?\s*(?:층|호|동)\s*$"
    r"|\s+[Bb]\d+\s*$"
)
_WHITESPACE = re.compile(r"\s+")


def normalize_address(address: str, default_region: str = "경기도") -> str:
    """Reduce free-form address text to something the geocoder can match.

    Strips parenthetical annotations, drops everything after the first comma,
    removes trailing floor/unit suffixes and prefixes ``default_region`` when
    no 시/구/군 token is present.

    Args:
        address: Raw address cell text.
        default_region: Region prepended to partial addresses.

    Returns:
        str: Normalized query text, or an empty string for blank input.
    """
    text = _PARENTHETICAL.sub(" ", str(address))
    text = text.split(",", 1)[0]
    text = _WHITESPACE.sub(" ", text).strip()

    previous = None
    while text and text != previous:
        previous = text
        text = _UNIT_SUFFIX.sub("", text).strip()

    if not text:
        return ""

    if default_region and not any(token in text for token in REGION_TOKENS):
        text = f"{default_region} {text}"
    return text


def address_hash(address: str) -> str:
    """Short change-detection digest of the stripped address text."""
    raw = str(address).strip().encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]
