"""Kakao Local address-search geocoding adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from app.adapters.geocoding.base import AbstractGeocodingClient, Coordinates
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.policy import RetryPolicy, fixed_quota_policy, transient_io_policy
from app.core.errors import (
    ConfigurationAppError,
    GeocodingAppError,
    QuotaExceededAppError,
    TransientIOAppError,
)
from app.utils.address_normalizer import normalize_address

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dapi.kakao.com/v2/local/search/address.json"


class KakaoGeocodingClient(AbstractGeocodingClient):
    """Geocoder calling Kakao's address search through a rate limiter.

    Retries are layered: the limiter handles quota errors with its own
    exponential backoff; on top of that this client waits a fixed 5s and
    tries once more after a 429, and retries network failures and timeouts
    with 2s/4s backoff.
    """

    def __init__(
        self,
        *,
        api_key: str,
        limiter: AbstractRateLimiter,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0,
        default_region: str = "경기도",
        quota_policy: RetryPolicy | None = None,
        transient_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not api_key:
            raise ConfigurationAppError(
                code="geocoding_missing_api_key",
                message="Kakao geocoding requires GEOCODING_API_KEY",
            )

        self.limiter = limiter
        self.base_url = base_url
        self.default_region = default_region
        self.quota_policy = quota_policy or fixed_quota_policy()
        self.transient_policy = transient_policy or transient_io_policy()
        self._sleep = sleep
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = {"Authorization": f"KakaoAK {api_key}"}

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(self, query: str) -> Any:
        """Single HTTP round trip, with failures mapped to application errors."""
        try:
            response = await self.client.get(
                self.base_url,
                params={"query": query},
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            raise TransientIOAppError(
                code="geocoding_timeout",
                message=f"Geocoding request timed out: {exc}",
                details={"service": "geocoding"},
            ) from exc
        except httpx.TransportError as exc:
            raise TransientIOAppError(
                code="geocoding_network_error",
                message=f"Geocoding network error: {exc}",
                details={"service": "geocoding"},
            ) from exc

        if response.status_code == 429:
            raise QuotaExceededAppError(
                code="geocoding_quota_exceeded",
                message="Geocoding quota exceeded",
                details={"service": "geocoding", "http_status": 429},
            )
        if response.is_error:
            raise GeocodingAppError(
                code="geocoding_api_error",
                message=f"Geocoding API error: {response.status_code} {response.reason_phrase}",
                details={"service": "geocoding", "http_status": response.status_code},
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GeocodingAppError(
                code="geocoding_invalid_payload",
                message="Geocoding API returned a non-JSON body",
                details={"service": "geocoding"},
            ) from exc

    @staticmethod
    def _parse(payload: Any) -> Coordinates | None:
        documents = (payload.get("documents") or []) if isinstance(payload, dict) else None
        if not isinstance(documents, list):
            raise GeocodingAppError(
                code="geocoding_invalid_payload",
                message="Geocoding API response is not an object with a documents list",
                details={"service": "geocoding", "payload_type": type(payload).__name__},
            )
        if not documents:
            return None
        first = documents[0]
        try:
            return Coordinates(latitude=float(first["y"]), longitude=float(first["x"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingAppError(
                code="geocoding_invalid_payload",
                message="Geocoding candidate lacks usable x/y coordinates",
                details={"service": "geocoding"},
            ) from exc

    async def geocode(self, address: str) -> Coordinates | None:
        query = normalize_address(address, self.default_region)
        if not query:
            return None

        attempts = {"quota": 0, "transient": 0}
        while True:
            try:
                payload = await self.limiter.execute(lambda: self._request(query))
                return self._parse(payload)
            except (QuotaExceededAppError, TransientIOAppError) as exc:
                kind = "quota" if isinstance(exc, QuotaExceededAppError) else "transient"
                policy = self.quota_policy if kind == "quota" else self.transient_policy
                attempt = attempts[kind]
                if not policy.should_retry(attempt, exc):
                    raise

                delay = policy.backoff(attempt)
                attempts[kind] = attempt + 1
                logger.warning(
                    "geocoding.retry",
                    extra={
                        "error_code": exc.code,
                        "attempt": attempt + 1,
                        "delay_s": delay,
                    },
                )
                await self._sleep(delay)
