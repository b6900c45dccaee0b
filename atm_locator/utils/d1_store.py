import logging
from typing import Any, Dict, List

import httpx

from atm_locator.config import Settings
from atm_locator.errors import BackendError
from atm_locator.models import RawRecord
from atm_locator.services.geo import BoundingBox

logger = logging.getLogger(__name__)

D1_BASE_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_LIMIT = 10

BOUNDING_BOX_SQL = (
    "SELECT * FROM atms "
    "WHERE lat BETWEEN ? AND ? "
    "AND long BETWEEN ? AND ? "
    "LIMIT ?"
)


def build_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.d1_timeout_seconds)


class D1Store:
    """Runs the bounding-box range query against a Cloudflare D1 database."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    @property
    def url(self) -> str:
        return (
            f"{D1_BASE_URL}/accounts/{self.settings.cloudflare_account_id}"
            f"/d1/database/{self.settings.cloudflare_database_id}/query"
        )

    async def query_by_bounding_box(self, box: BoundingBox, limit: int = DEFAULT_LIMIT) -> List[RawRecord]:
        body = {
            "sql": BOUNDING_BOX_SQL,
            "params": [box.min_lat, box.max_lat, box.min_lng, box.max_lng, limit],
        }
        headers = {
            "Authorization": f"Bearer {self.settings.cloudflare_api_token}",
            "Content-Type": "application/json",
        }

        try:
            response = await self.client.post(self.url, json=body, headers=headers)
            response.raise_for_status()
            payload: Dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            raise BackendError(f"HTTP error! status: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"D1 request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError("D1 returned a non-JSON body") from exc

        if not isinstance(payload, dict):
            logger.error("D1 returned a %s envelope", type(payload).__name__)
            raise BackendError("Cloudflare API request failed")
        if not payload.get("success"):
            logger.error("D1 query failed: errors=%s", payload.get("errors"))
            raise BackendError("Cloudflare API request failed")

        try:
            rows = payload["result"][0]["results"]
            records = [RawRecord.from_row(row) for row in rows]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise BackendError(f"Unexpected D1 result shape: {exc}") from exc

        logger.info("D1 returned %d rows for %s", len(records), box)
        return records
