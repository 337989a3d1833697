"""Service container and FastAPI dependencies.

Every stateful service (limiters, cache, HTTP clients) is built once per
process in the application lifespan and stored on ``app.state``. Routes
receive them through the dependency functions below, which also lets tests
swap any of them via ``app.dependency_overrides``.

Services whose credentials are missing are left as ``None``; the
dependencies turn that into a 503 at request time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import HTTPException, Request, status

from app.adapters.geocoding.base import AbstractGeocodingClient
from app.adapters.geocoding.kakao_client import KakaoGeocodingClient
from app.adapters.hash_store.json_file import JsonFileHashStore
from app.adapters.notify.base import AbstractNotifier
from app.adapters.notify.discord_webhook import DiscordWebhookNotifier
from app.adapters.rate_limit.cooldown import CooldownRateLimiter
from app.adapters.rate_limit.policy import quota_backoff_policy
from app.adapters.sheets.google_sheets import GoogleSheetsDocumentStore
from app.core.config import Settings
from app.core.errors import ConfigurationAppError
from app.services.geocoding_sync_service import GeocodingSyncPipeline
from app.services.sheet_gateway import SheetGateway
from app.services.sync_targets import build_default_targets
from app.utils.response_cache import ResponseCache

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Process-wide service instances."""

    cache: ResponseCache
    sheets_limiter: CooldownRateLimiter
    gateway: SheetGateway | None = None
    geocoder: AbstractGeocodingClient | None = None
    notifier: AbstractNotifier | None = None
    pipelines: dict[str, GeocodingSyncPipeline] = field(default_factory=dict)

    async def aclose(self) -> None:
        if self.geocoder is not None:
            await self.geocoder.aclose()
        if self.notifier is not None:
            await self.notifier.aclose()


def build_services(cfg: Settings) -> ServiceContainer:
    """Construct every service from settings.

    Args:
        cfg: Application settings.

    Returns:
        ServiceContainer with the services the configuration allows.
    """
    cache = ResponseCache(
        default_ttl_seconds=cfg.cache.default_ttl_seconds,
        max_size=cfg.cache.max_size,
    )
    sheets_limiter = CooldownRateLimiter(
        name="sheets",
        cooldown_seconds=cfg.sheets.cooldown_seconds,
        retry_policy=quota_backoff_policy(cfg.sheets.max_attempts),
    )
    container = ServiceContainer(cache=cache, sheets_limiter=sheets_limiter)

    if cfg.sheets.credentials_file and cfg.sheets.spreadsheet_id:
        store = GoogleSheetsDocumentStore.from_service_account_file(
            cfg.sheets.credentials_file,
            timeout_seconds=cfg.sheets.request_timeout_seconds,
        )
        container.gateway = SheetGateway(
            store=store,
            limiter=sheets_limiter,
            cache=cache,
            default_spreadsheet_id=cfg.sheets.spreadsheet_id,
        )
    else:
        logger.warning(
            "services.sheets_disabled",
            extra={"reason": "SHEETS_CREDENTIALS_FILE or SHEETS_SPREADSHEET_ID not set"},
        )

    if cfg.geocoding.api_key:
        # Separate quota, separate limiter
        geocoding_limiter = CooldownRateLimiter(
            name="geocoding",
            cooldown_seconds=cfg.geocoding.cooldown_seconds,
            retry_policy=quota_backoff_policy(max_attempts=2),
        )
        container.geocoder = KakaoGeocodingClient(
            api_key=cfg.geocoding.api_key,
            limiter=geocoding_limiter,
            base_url=cfg.geocoding.base_url,
            timeout_seconds=cfg.geocoding.timeout_seconds,
            default_region=cfg.geocoding.default_region,
        )
    else:
        logger.warning("services.geocoding_disabled", extra={"reason": "GEOCODING_API_KEY not set"})

    if cfg.notify.enabled:
        container.notifier = DiscordWebhookNotifier(
            cfg.notify.discord_webhook_url or "",
            timeout_seconds=cfg.notify.timeout_seconds,
        )

    if container.gateway is not None and container.geocoder is not None:
        hash_store = JsonFileHashStore(cfg.geocoding.hash_store_path)
        for name, target in build_default_targets(cfg).items():
            container.pipelines[name] = GeocodingSyncPipeline(
                target=target,
                gateway=container.gateway,
                geocoder=container.geocoder,
                hash_store=hash_store,
                notifier=container.notifier,
                pacing_seconds=cfg.geocoding.pacing_seconds,
            )

    logger.info(
        "services.ready",
        extra={
            "sheets": container.gateway is not None,
            "geocoding": container.geocoder is not None,
            "notify": container.notifier is not None,
            "sync_targets": sorted(container.pipelines),
        },
    )
    return container


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_cache(request: Request) -> ResponseCache:
    return get_services(request).cache


def get_gateway(request: Request) -> SheetGateway:
    gateway = get_services(request).gateway
    if gateway is None:
        raise ConfigurationAppError(
            code="sheets_not_configured",
            message="Spreadsheet access is not configured",
            details={"service": "sheets"},
        )
    return gateway


def get_pipeline(target: str, request: Request) -> GeocodingSyncPipeline:
    """Resolve the sync pipeline named by the ``target`` path parameter."""
    services = get_services(request)
    if services.gateway is None or services.geocoder is None:
        raise ConfigurationAppError(
            code="sync_not_configured",
            message="Coordinate sync needs both spreadsheet access and a geocoding key",
            details={"service": "sync"},
        )
    pipeline = services.pipelines.get(target)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown sync target '{target}'",
        )
    return pipeline
