import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from streampromo.api.v1 import discounts, gifts, streams
from streampromo.core.dependencies import get_store
from streampromo.core.errors import StoreError
from streampromo.core.metrics import snapshot as metrics_snapshot
from streampromo.services.store import EntityStore

logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(discounts.router)
api_router.include_router(gifts.router)
api_router.include_router(streams.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get("/health/ready", tags=["health"])
async def readiness(store: EntityStore = Depends(get_store)):
    try:
        await store.ping(timeout=1.0)
    except StoreError as exc:
        logger.warning("Readiness check failed, Reason: %s", exc)
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}


@api_router.get("/metrics", tags=["metrics"])
def metrics() -> dict:
    return metrics_snapshot()
