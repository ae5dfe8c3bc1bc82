#!/usr/bin/env python3
"""
Core Module

Shared infrastructure for the inventory microservice.

COMPONENTS:
    - config/: Dataclass configuration loaded from the environment
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg pool wrapper
    - redis_client.py: redis.asyncio cache client
    - nats_client.py: NATS JetStream event bus

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("inventory_service", level=settings.logging.log_level)
"""

__version__ = "2.0.0"
