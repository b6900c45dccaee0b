"""Proximity search: cache, bounding-box range query, haversine refine."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Set, Tuple

from atm_locator.config import Settings
from atm_locator.errors import BackendError, InvalidInput
from atm_locator.models import NearbyRecord, RawRecord
from atm_locator.services.cache_keys import get_cache_key
from atm_locator.services.geo import BoundingBox, Coordinate, get_bounding_box, haversine
from atm_locator.services.proximity_cache import ProximityCache

logger = logging.getLogger(__name__)


class Store(Protocol):
    async def query_by_bounding_box(self, box: BoundingBox, limit: int) -> List[RawRecord]: ...


@dataclass(frozen=True)
class QueryResult:
    records: List[NearbyRecord]
    cache_hit: bool = False


def _parse_number(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput("parameter missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"not a number: {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidInput(f"not a finite number: {value!r}")
    return number


def parse_query_params(lat: Any, lng: Any, radius: Any) -> Tuple[Coordinate, float]:
    """Validate raw lat/lng/radius values. Sign and range are not checked."""
    return Coordinate(_parse_number(lat), _parse_number(lng)), _parse_number(radius)


def refine(center: Coordinate, radius: float, rows: List[RawRecord]) -> List[NearbyRecord]:
    """Keep rows within radius miles of center, in the order given."""
    nearby: List[NearbyRecord] = []
    for row in rows:
        try:
            address = row.decode_address()
        except (TypeError, ValueError) as exc:
            raise BackendError(f"Undecodable address for record {row.id}") from exc
        distance = haversine(center, row.coordinate)
        if distance <= radius:
            nearby.append(NearbyRecord.from_raw(row, distance, address))
    return nearby


class ProximityQuery:
    def __init__(
        self,
        cache: ProximityCache,
        store: Store,
        settings: Settings,
    ):
        self.cache = cache
        self.store = store
        self.settings = settings
        self._pending_writes: Set[asyncio.Task] = set()

    async def execute(self, lat: Any, lng: Any, radius: Any) -> QueryResult:
        center, radius_miles = parse_query_params(lat, lng, radius)

        cache_key = get_cache_key(center)
        logger.info("Cache key: %s", cache_key)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit for key: %s", cache_key)
            return QueryResult(records=cached, cache_hit=True)

        # Configuration is only needed once we have to reach the backend.
        self.settings.require_d1()

        box = get_bounding_box(center, radius_miles)
        rows = await self.store.query_by_bounding_box(box, limit=self.settings.query_limit)
        nearby = refine(center, radius_miles, rows)

        self._schedule_write(cache_key, nearby)
        return QueryResult(records=nearby, cache_hit=False)

    def _schedule_write(self, cache_key: str, records: List[NearbyRecord]) -> None:
        task = asyncio.create_task(
            self.cache.put(cache_key, records, self.settings.cache_ttl_seconds)
        )
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for cache writes still in flight."""
        if self._pending_writes:
            await asyncio.wait(set(self._pending_writes), timeout=timeout)
