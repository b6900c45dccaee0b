import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atm_locator.config import get_settings
from atm_locator.routers import atms_router
from atm_locator.services.proximity_cache import ProximityCache
from atm_locator.services.proximity_query import ProximityQuery
from atm_locator.utils.d1_store import D1Store, build_client
from atm_locator.utils.redis_connection import get_cache_store

settings = get_settings()

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache_store = get_cache_store(settings)
    http_client = build_client(settings)
    app.state.proximity_query = ProximityQuery(
        cache=ProximityCache(cache_store),
        store=D1Store(settings, http_client),
        settings=settings,
    )
    try:
        yield
    finally:
        await app.state.proximity_query.drain(timeout=5)
        await http_client.aclose()
        await cache_store.close()


app = FastAPI(title="ATM Locator API", version="1.0", lifespan=lifespan)

# CORS (for frontend access)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(atms_router.router)


@app.get("/")
async def root():
    return {"message": "ATM Locator API is running"}
