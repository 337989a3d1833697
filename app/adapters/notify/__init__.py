"""Notification sinks for sync summaries."""

from app.adapters.notify.base import AbstractNotifier, NotificationField
from app.adapters.notify.discord_webhook import DiscordWebhookNotifier

__all__ = [
    "AbstractNotifier",
    "DiscordWebhookNotifier",
    "NotificationField",
]
