#!/usr/bin/env python3
"""Inventory service configuration

Reservation TTL, cache TTLs and expiration sweep scheduling.
"""
import os
from dataclasses import dataclass, field
from datetime import timedelta

from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class InventoryConfig:
    """Inventory service settings"""
    service_name: str = "inventory_service"
    environment: str = "development"

    # Reservations
    reservation_ttl_minutes: int = 15
    low_stock_threshold: int = 10

    # Cache-aside layer
    cache_enabled: bool = True
    cache_item_ttl_seconds: int = 300
    cache_low_stock_ttl_seconds: int = 60

    # Events
    events_enabled: bool = True

    # Expiration sweep
    scheduler_enabled: bool = True
    scheduler_interval_minutes: int = 10
    sweep_timeout_seconds: int = 120
    sweep_batch_limit: int = 1000

    infra: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def reservation_ttl(self) -> timedelta:
        return timedelta(minutes=self.reservation_ttl_minutes)

    @property
    def scheduler_interval(self) -> timedelta:
        return timedelta(minutes=self.scheduler_interval_minutes)

    @classmethod
    def from_env(cls) -> 'InventoryConfig':
        """Load inventory config from environment variables"""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "inventory_service"),
            environment=os.getenv("ENV") or os.getenv("ENVIRONMENT", "development"),
            reservation_ttl_minutes=_int(os.getenv("RESERVATION_TTL_MINUTES", "15"), 15),
            low_stock_threshold=_int(os.getenv("LOW_STOCK_THRESHOLD", "10"), 10),
            cache_enabled=_bool(os.getenv("CACHE_ENABLED", "true")),
            cache_item_ttl_seconds=_int(os.getenv("CACHE_ITEM_TTL_SECONDS", "300"), 300),
            cache_low_stock_ttl_seconds=_int(os.getenv("CACHE_LOW_STOCK_TTL_SECONDS", "60"), 60),
            events_enabled=_bool(os.getenv("EVENTS_ENABLED", "true")),
            scheduler_enabled=_bool(os.getenv("SCHEDULER_ENABLED", "true")),
            scheduler_interval_minutes=_int(os.getenv("SCHEDULER_INTERVAL_MINUTES", "10"), 10),
            sweep_timeout_seconds=_int(os.getenv("SWEEP_TIMEOUT_SECONDS", "120"), 120),
            sweep_batch_limit=_int(os.getenv("SWEEP_BATCH_LIMIT", "1000"), 1000),
            infra=InfraConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )
