"""
Unit Tests for InventoryConfig
"""
from datetime import timedelta

import pytest

from core.config import InventoryConfig

pytestmark = pytest.mark.unit

_VARS = [
    "RESERVATION_TTL_MINUTES", "LOW_STOCK_THRESHOLD", "CACHE_ENABLED", "EVENTS_ENABLED",
    "SCHEDULER_ENABLED", "SCHEDULER_INTERVAL_MINUTES", "SWEEP_TIMEOUT_SECONDS", "SWEEP_BATCH_LIMIT",
    "NATS_URL", "NATS_HOST", "NATS_PORT", "POSTGRES_PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestInventoryConfig:

    def test_defaults(self, clean_env):
        config = InventoryConfig.from_env()

        assert config.reservation_ttl == timedelta(minutes=15)
        assert config.scheduler_interval == timedelta(minutes=10)
        assert config.low_stock_threshold == 10
        assert config.sweep_batch_limit == 1000
        assert config.cache_enabled is True

    def test_overrides(self, clean_env):
        clean_env.setenv("RESERVATION_TTL_MINUTES", "5")
        clean_env.setenv("SCHEDULER_INTERVAL_MINUTES", "1")
        clean_env.setenv("CACHE_ENABLED", "false")
        clean_env.setenv("SWEEP_BATCH_LIMIT", "50")

        config = InventoryConfig.from_env()

        assert config.reservation_ttl == timedelta(minutes=5)
        assert config.scheduler_interval == timedelta(minutes=1)
        assert config.cache_enabled is False
        assert config.sweep_batch_limit == 50

    def test_bad_integer_falls_back_to_default(self, clean_env):
        clean_env.setenv("RESERVATION_TTL_MINUTES", "soon")
        assert InventoryConfig.from_env().reservation_ttl_minutes == 15

    def test_nats_url_built_from_host_and_port(self, clean_env):
        clean_env.setenv("NATS_HOST", "nats.internal")
        clean_env.setenv("NATS_PORT", "4333")

        assert InventoryConfig.from_env().infra.resolved_nats_url == "nats://nats.internal:4333"

    def test_explicit_nats_url_wins(self, clean_env):
        clean_env.setenv("NATS_URL", "nats://bus:4222")
        clean_env.setenv("NATS_HOST", "ignored")

        assert InventoryConfig.from_env().infra.resolved_nats_url == "nats://bus:4222"
