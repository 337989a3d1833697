"""Discord webhook notifier."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from app.adapters.notify.base import AbstractNotifier, NotificationField
from app.core.errors import ConfigurationAppError, NotificationAppError

logger = logging.getLogger(__name__)

# Discord embed limits
_MAX_TITLE = 256
_MAX_FIELD_VALUE = 1024
_MAX_FIELDS = 25
EMBED_COLOR = 0x2ECC71


class DiscordWebhookNotifier(AbstractNotifier):
    """Post summaries as a single embed to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not webhook_url:
            raise ConfigurationAppError(
                code="notify_missing_webhook",
                message="Discord notifications require NOTIFY_DISCORD_WEBHOOK_URL",
            )
        self.webhook_url = webhook_url
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def build_payload(self, title: str, fields: list[NotificationField]) -> dict:
        return {
            "embeds": [
                {
                    "title": title[:_MAX_TITLE],
                    "color": EMBED_COLOR,
                    "fields": [
                        {
                            "name": field.name,
                            "value": str(field.value)[:_MAX_FIELD_VALUE] or "-",
                            "inline": True,
                        }
                        for field in fields[:_MAX_FIELDS]
                    ],
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            ]
        }

    async def notify(self, title: str, fields: list[NotificationField]) -> None:
        try:
            response = await self.client.post(self.webhook_url, json=self.build_payload(title, fields))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationAppError(
                code="notification_failed",
                # exc text embeds the webhook URL, which carries the token
                message=f"Discord webhook delivery failed ({type(exc).__name__})",
                details={"service": "discord"},
            ) from exc

        logger.info("notify.sent", extra={"title": title, "fields": len(fields)})
