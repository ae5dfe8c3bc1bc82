"""Inventory Service worker with NATS event integration, PostgreSQL and Redis.

Runs the order-event handlers and the reservation expiration scheduler.

    python -m microservices.inventory_service.worker
"""

import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from core.config import InventoryConfig, get_settings
from core.logger import setup_service_logger
from core.nats_client import NATSEventBus, get_event_bus
from core.postgres_client import PostgresClientWrapper, get_postgres_client
from core.redis_client import RedisCacheClient

from .expiration_sweeper import ReservationSweepScheduler
from .factory import create_inventory_service, create_sweep_scheduler
from .inventory_service import InventoryService

logger = logging.getLogger(__name__)


@dataclass
class InventoryRuntime:
    """Everything the worker wires together at startup"""
    service: InventoryService
    scheduler: ReservationSweepScheduler
    db: PostgresClientWrapper
    cache: Optional[RedisCacheClient] = None
    event_bus: Optional[NATSEventBus] = None


@asynccontextmanager
async def lifespan(config: InventoryConfig) -> AsyncIterator[InventoryRuntime]:
    infra = config.infra

    db = await get_postgres_client(
        config.service_name,
        host=infra.postgres_host,
        port=infra.postgres_port,
        database=infra.postgres_db,
        username=infra.postgres_user,
        password=infra.postgres_password,
        min_size=infra.postgres_min_pool,
        max_size=infra.postgres_max_pool,
        command_timeout=infra.postgres_command_timeout,
    )
    await db.connect()

    cache: Optional[RedisCacheClient] = None
    event_bus: Optional[NATSEventBus] = None
    scheduler: Optional[ReservationSweepScheduler] = None
    try:
        # Cache and events are optional: the service runs store-only without them
        if config.cache_enabled:
            cache = RedisCacheClient(
                host=infra.redis_host,
                port=infra.redis_port,
                db=infra.redis_db,
                password=infra.redis_password,
                default_ttl=config.cache_item_ttl_seconds,
            )
            try:
                await cache.ping()
                logger.info("Redis cache connected")
            except Exception as e:
                logger.warning(f"Redis unavailable ({e}); cache-aside layer will fail open")

        if config.events_enabled:
            try:
                event_bus = await get_event_bus(config.service_name, nats_url=infra.resolved_nats_url)
                logger.info("Event bus initialized successfully")
            except Exception as e:
                logger.warning(f"Failed to initialize event bus: {e}. Continuing without event publishing.")
                event_bus = None

        service, reservation_repository = create_inventory_service(config, db, cache, event_bus)
        scheduler = create_sweep_scheduler(config, service, reservation_repository)

        if event_bus:
            from .events.handlers import get_event_handlers

            handler_map = get_event_handlers(service, event_bus)
            for event_pattern, handler_func in handler_map.items():
                await event_bus.subscribe_to_events(pattern=event_pattern, handler=handler_func)
            logger.info(f"Event handlers registered - subscribed to {len(handler_map)} event types")

        if config.scheduler_enabled:
            scheduler.start()

        logger.info("Inventory Service started")
        yield InventoryRuntime(service=service, scheduler=scheduler, db=db, cache=cache, event_bus=event_bus)
    finally:
        # Also runs when startup fails after the pool is open
        logger.info("Inventory Service shutting down...")
        if scheduler is not None:
            await scheduler.stop()
        if event_bus:
            await event_bus.close()
        if cache:
            await cache.close()
        await db.close()


async def main() -> None:
    config = get_settings()
    setup_service_logger(config.service_name, level=config.logging.log_level, config=config.logging)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with lifespan(config):
        await stop.wait()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
