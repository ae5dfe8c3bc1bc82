#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup configuration for the inventory service.
"""

from setuptools import setup, find_namespace_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="inventory-service",
    version="0.1.0",
    description="Inventory ledger and TTL-bound stock reservations over PostgreSQL, Redis and NATS",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["core", "core.*", "microservices", "microservices.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "tenacity>=8.0.0",
        "asyncpg>=0.29.0",  # PostgreSQL async client
        "redis>=5.0.1",  # cache-aside layer (redis.asyncio)
        "nats-py>=2.6.0",  # JetStream event bus
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    include_package_data=True,
    package_data={
        "microservices.inventory_service": ["migrations/*.sql"],
    },
    entry_points={
        "console_scripts": [
            "inventory-worker=microservices.inventory_service.worker:run",
        ],
    },
)
