"""Outbound rate limiting for external APIs.

Limiters serialize calls to one external service, keep a minimum spacing
between them and retry calls the service rejected for quota reasons.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.cooldown import CooldownRateLimiter
from app.adapters.rate_limit.policy import RetryPolicy, quota_backoff_policy

__all__ = [
    "AbstractRateLimiter",
    "CooldownRateLimiter",
    "RetryPolicy",
    "quota_backoff_policy",
]
