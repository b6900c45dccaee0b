"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from atm_locator.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    cloudflare_api_token: str = ""
    cloudflare_account_id: str = ""
    cloudflare_database_id: str = ""
    redis_host: str = ""
    redis_port: int = 6379
    redis_password: Optional[str] = None
    cache_ttl_seconds: int = 60
    query_limit: int = 10
    d1_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    def require_d1(self) -> None:
        """Fail unless the three Cloudflare D1 values are present."""
        missing = [
            name
            for name, value in (
                ("CLOUDFLARE_AUTH_TOKEN", self.cloudflare_api_token),
                ("CLOUDFLARE_ACCOUNT_ID", self.cloudflare_account_id),
                ("CLOUDFLARE_DATABASE_ID", self.cloudflare_database_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"missing settings: {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    settings = Settings(
        cloudflare_api_token=os.getenv("CLOUDFLARE_AUTH_TOKEN", ""),
        cloudflare_account_id=os.getenv("CLOUDFLARE_ACCOUNT_ID", ""),
        cloudflare_database_id=os.getenv("CLOUDFLARE_DATABASE_ID", ""),
        redis_host=os.getenv("REDIS_HOST", ""),
        redis_port=int(os.getenv("REDIS_PORT", "6379")),
        redis_password=os.getenv("REDIS_PASSWORD") or None,
        cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "60")),
        query_limit=int(os.getenv("ATM_QUERY_LIMIT", "10")),
        d1_timeout_seconds=float(os.getenv("D1_TIMEOUT_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    if not (settings.cloudflare_api_token and settings.cloudflare_account_id and settings.cloudflare_database_id):
        logger.warning("Cloudflare D1 settings are incomplete; cache misses will fail.")

    return settings
