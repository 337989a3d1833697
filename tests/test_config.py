from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import CacheSettings, Settings
from app.core.services import build_services


def test_nested_groups_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CACHE_MAX_SIZE", "50")
    monkeypatch.setenv("GEOCODING_DEFAULT_REGION", "서울특별시")
    monkeypatch.setenv("SHEETS_COOLDOWN_SECONDS", "1.5")

    cfg = Settings()

    assert cfg.cache.max_size == 50
    assert cfg.cache.default_ttl_seconds == 300.0
    assert cfg.geocoding.default_region == "서울특별시"
    assert cfg.sheets.cooldown_seconds == 1.5
    assert cfg.notify.enabled is False


def test_invalid_cache_bounds_are_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CACHE_WARNING_RATIO", "1.5")

    with pytest.raises(ValidationError):
        CacheSettings()


def test_missing_credentials_leave_services_disabled():
    services = build_services(Settings())

    assert services.gateway is None
    assert services.geocoder is None
    assert services.pipelines == {}
    assert services.cache.max_size == 200
