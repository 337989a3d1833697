"""Address geocoding adapters."""

from app.adapters.geocoding.base import AbstractGeocodingClient, Coordinates
from app.adapters.geocoding.kakao_client import KakaoGeocodingClient

__all__ = [
    "AbstractGeocodingClient",
    "Coordinates",
    "KakaoGeocodingClient",
]
