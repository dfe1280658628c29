# src/mixsched/api/dependencies.py
"""
FastAPI dependency injection functions.

The admission engine is assembled once in the application lifespan and
stored on app.state; route handlers receive it through Depends().
"""

from fastapi import Request

from ..admission.dispatcher import AdmissionDispatcher
from ..cluster.cache import ClusterStateCache


async def get_dispatcher(request: Request) -> AdmissionDispatcher:
    """Provides the AdmissionDispatcher built at startup."""
    return request.app.state.dispatcher


async def get_cache(request: Request) -> ClusterStateCache:
    """Provides the ClusterStateCache built at startup."""
    return request.app.state.cache
