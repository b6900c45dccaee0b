import logging

import redis.asyncio as redis

from atm_locator.config import Settings
from atm_locator.services.proximity_cache import CacheStore, MemoryCacheStore, RedisCacheStore

logger = logging.getLogger(__name__)


# Redis when REDIS_HOST is configured, otherwise a per-process store.
def get_cache_store(settings: Settings) -> CacheStore:
    if not settings.redis_host:
        logger.warning("REDIS_HOST is not set; falling back to the in-process cache.")
        return MemoryCacheStore()
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
        username="default",
        password=settings.redis_password,
    )
    return RedisCacheStore(client)
