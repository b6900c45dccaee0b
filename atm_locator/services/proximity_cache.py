"""Short-lived cache of proximity results keyed by quantized location."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from atm_locator.models import NearbyRecord

logger = logging.getLogger(__name__)

DEFAULT_PARTITION = "atm-cache"


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def close(self) -> None: ...


class RedisCacheStore:
    """CacheStore backed by a `redis.asyncio.Redis` client with decode_responses=True."""

    def __init__(self, client: Any):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.client.set(key, value, ex=ttl_seconds)

    async def close(self) -> None:
        await self.client.aclose()


@dataclass
class CacheItem:
    value: str
    expires_at: float


class MemoryCacheStore:
    """Process-local TTL store for development and tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._store: Dict[str, CacheItem] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._store.get(key)
        if not item:
            return None
        if item.expires_at <= self._clock():
            self._store.pop(key, None)
            return None
        return item.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = CacheItem(value=value, expires_at=self._clock() + ttl_seconds)

    async def close(self) -> None:
        self._store.clear()


class ProximityCache:
    def __init__(self, store: CacheStore, partition: str = DEFAULT_PARTITION):
        self.store = store
        self.partition = partition

    def _qualify(self, key: str) -> str:
        return f"{self.partition}:{key}"

    async def get(self, key: str) -> Optional[List[NearbyRecord]]:
        """Cached records for key, or None on miss, expiry or a store failure."""
        try:
            payload = await self.store.get(self._qualify(key))
            if payload is None:
                return None
            return [NearbyRecord.from_dict(item) for item in json.loads(payload)]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache read failed for key %s: %s", key, exc)
            return None

    async def put(self, key: str, records: Sequence[NearbyRecord], ttl_seconds: int) -> None:
        """Best-effort write; failures are logged and never raised."""
        try:
            payload = json.dumps([record.to_dict() for record in records])
            await self.store.set(self._qualify(key), payload, ttl_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Cache write failed for key %s: %s", key, exc)
