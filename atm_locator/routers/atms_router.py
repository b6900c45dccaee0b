# atm_locator/routers/atms_router.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from atm_locator.errors import ProximityError
from atm_locator.services.proximity_query import ProximityQuery

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ATMs"])


def get_proximity_query(request: Request) -> ProximityQuery:
    return request.app.state.proximity_query


@router.get("/atms")
async def nearby_atms(
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    radius: Optional[str] = None,
    query: ProximityQuery = Depends(get_proximity_query),
):
    """ATMs within `radius` miles of (`lat`, `lng`)."""
    try:
        result = await query.execute(lat, lng, radius)
    except ProximityError as exc:
        if exc.status_code >= 500:
            logger.exception("Error fetching ATMs: %s", exc.detail)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    body = [record.to_dict() for record in result.records]
    headers = {"cache-hit": "true"} if result.cache_hit else None
    return JSONResponse(body, status_code=200, headers=headers)
