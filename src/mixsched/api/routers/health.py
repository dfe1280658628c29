# src/mixsched/api/routers/health.py
"""
Liveness and readiness endpoints.
"""

from fastapi import APIRouter, Depends

from ... import __version__
from ...cluster.cache import ClusterStateCache
from ..dependencies import get_cache
from ..schemas import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
async def health():
    """Liveness endpoint."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/readyz", response_model=ReadinessResponse)
async def ready(cache: ClusterStateCache = Depends(get_cache)):
    """Readiness endpoint.

    The webhook answers admissions before the cache is synced (reads go to
    the API server directly), so it reports ready in both modes.
    """
    return ReadinessResponse(status="ok", cache_synced=cache.is_synced)
