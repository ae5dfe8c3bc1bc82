"""
Cached Inventory Repository

Cache-aside decorator around any InventoryRepositoryProtocol.

Keys:
    item:id:<id>                      single item by ID
    item:product:<product_id>         single item by product ID
    lowstock:<threshold>:<limit>      low-stock query result (short TTL)

The cache is never authoritative. Every cache failure is logged and
ignored so the store answers instead (fail-open).
"""

import logging
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .models import StockItem
from .protocols import CacheProtocol, InventoryRepositoryProtocol

logger = logging.getLogger(__name__)

ITEM_ID_KEY = "item:id:{}"
ITEM_PRODUCT_KEY = "item:product:{}"
LOW_STOCK_KEY = "lowstock:{}:{}"
LOW_STOCK_PATTERN = "lowstock:*"

_item_list_adapter = TypeAdapter(List[StockItem])


def item_id_key(item_id: str) -> str:
    return ITEM_ID_KEY.format(item_id)


def item_product_key(product_id: str) -> str:
    return ITEM_PRODUCT_KEY.format(product_id)


def low_stock_key(threshold: int, limit: int) -> str:
    return LOW_STOCK_KEY.format(threshold, limit)


class CachedInventoryRepository:
    """Read-through, invalidate-on-write cache in front of the ledger store"""

    def __init__(
        self,
        repository: InventoryRepositoryProtocol,
        cache: CacheProtocol,
        item_ttl: int = 300,
        low_stock_ttl: int = 60,
    ):
        self.repository = repository
        self.cache = cache
        self.item_ttl = item_ttl
        self.low_stock_ttl = low_stock_ttl

    # ------------------------------------------------------------------
    # Fail-open cache helpers
    # ------------------------------------------------------------------

    async def _cache_get(self, key: str) -> Optional[str]:
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

    async def _cache_set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.cache.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def _get_cached_item(self, key: str) -> Optional[StockItem]:
        cached = await self._cache_get(key)
        if not cached:
            return None
        try:
            return StockItem.model_validate_json(cached)
        except ValidationError as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None

    async def _populate(self, item: StockItem) -> None:
        payload = item.model_dump_json()
        await self._cache_set(item_id_key(item.id), payload, self.item_ttl)
        await self._cache_set(item_product_key(item.product_id), payload, self.item_ttl)

    async def _invalidate(self, item_id: str, product_id: Optional[str]) -> None:
        keys = [item_id_key(item_id)]
        if product_id:
            keys.append(item_product_key(product_id))
        try:
            await self.cache.delete(*keys)
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {keys}: {e}")
        try:
            await self.cache.delete_pattern(LOW_STOCK_PATTERN)
        except Exception as e:
            logger.warning(f"Low-stock cache invalidation failed: {e}")

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    async def get_item(self, item_id: str) -> StockItem:
        item = await self._get_cached_item(item_id_key(item_id))
        if item is not None:
            return item
        item = await self.repository.get_item(item_id)
        await self._populate(item)
        return item

    async def get_item_by_product(self, product_id: str) -> StockItem:
        item = await self._get_cached_item(item_product_key(product_id))
        if item is not None:
            return item
        item = await self.repository.get_item_by_product(product_id)
        await self._populate(item)
        return item

    async def find_low_stock(self, threshold: int, limit: int = 100) -> List[StockItem]:
        key = low_stock_key(threshold, limit)
        cached = await self._cache_get(key)
        if cached:
            try:
                return _item_list_adapter.validate_json(cached)
            except ValidationError as e:
                logger.warning(f"Discarding undecodable cache entry {key}: {e}")

        items = await self.repository.find_low_stock(threshold, limit)
        await self._cache_set(key, _item_list_adapter.dump_json(items).decode(), self.low_stock_ttl)
        return items

    async def exists_by_product_id(self, product_id: str) -> bool:
        # Absence is never cached, so a miss always asks the store
        if await self._cache_get(item_product_key(product_id)):
            return True
        return await self.repository.exists_by_product_id(product_id)

    # ------------------------------------------------------------------
    # Uncached reads
    # ------------------------------------------------------------------

    async def list_items(self, limit: int = 100, offset: int = 0) -> List[StockItem]:
        return await self.repository.list_items(limit, offset)

    async def get_items(self, item_ids: List[str]) -> List[StockItem]:
        return await self.repository.get_items(item_ids)

    async def get_items_by_product_ids(self, product_ids: List[str]) -> Dict[str, StockItem]:
        return await self.repository.get_items_by_product_ids(product_ids)

    async def count_items(self) -> int:
        return await self.repository.count_items()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_item(self, item: StockItem) -> None:
        await self.repository.save_item(item)
        await self._populate(item)

    async def update_item(self, item: StockItem) -> None:
        # Conflicts and vanished rows also drop the entries so the next read goes to the store
        try:
            await self.repository.update_item(item)
        finally:
            await self._invalidate(item.id, item.product_id)

    async def delete_item(self, item_id: str) -> None:
        item = await self.repository.get_item(item_id)
        await self.repository.delete_item(item_id)
        await self._invalidate(item_id, item.product_id)

    async def increment_version(self, item_id: str) -> int:
        item = await self.repository.get_item(item_id)
        version = await self.repository.increment_version(item_id)
        await self._invalidate(item_id, item.product_id)
        return version
