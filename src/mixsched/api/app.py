# src/mixsched/api/app.py
"""
FastAPI application factory for the admission webhook.

Uses the factory pattern so the app can be created with or without
lifespan management (tests skip the Kubernetes client and inject a
dispatcher through dependency overrides).
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .. import __version__
from ..admission.dispatcher import AdmissionDispatcher
from ..cluster.cache import ClusterStateCache
from ..core.config import config
from ..core.k8s_client import close_api, get_core_v1_api
from ..placement.decision import PlacementEngine
from ..policy.resolver import PolicyResolver
from .routers import admission, health

logger = logging.getLogger(__name__)


def build_dispatcher(cache: ClusterStateCache) -> AdmissionDispatcher:
    """Assembles the admission engine around a cluster cache from the current configuration."""
    settings = config.build_settings()
    logger.info(
        "Policy defaults: enabled=%s, spot_weight=%d, on_demand_weight=%d, on_demand_floor=%d, spot_floor=%d, "
        "excluded_namespaces=%s",
        settings.enabled,
        settings.spot_weight,
        settings.on_demand_weight,
        settings.on_demand_floor,
        settings.spot_floor,
        sorted(settings.excluded_namespaces),
    )
    return AdmissionDispatcher(PolicyResolver(settings), PlacementEngine(cache, settings), cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the cluster, start the cache sync, and stop it on shutdown."""
    logger.info("Starting mix-scheduler admission webhook...")
    if config.OTEL_ENABLED:
        from ..core.telemetry import initialize_telemetry

        initialize_telemetry()

    api = await get_core_v1_api()
    if api is None:
        raise RuntimeError("No Kubernetes configuration available; cannot start the webhook.")

    cache = ClusterStateCache(
        api,
        watch_timeout_seconds=config.CACHE_WATCH_TIMEOUT_SECONDS,
        retry_backoff_seconds=config.CACHE_RETRY_BACKOFF_SECONDS,
    )
    app.state.cache = cache
    app.state.dispatcher = build_dispatcher(cache)

    # Admissions are served in direct mode while the initial sync runs.
    sync_task = asyncio.create_task(cache.wait_for_sync())
    yield
    logger.info("Shutting down mix-scheduler admission webhook...")
    sync_task.cancel()
    await asyncio.gather(sync_task, return_exceptions=True)
    await cache.stop()
    await close_api(api)


def create_app(use_lifespan: bool = False) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: If True, attach the lifespan handler that connects to
                      the cluster and runs the cache sync. Set to False for testing.

    Returns:
        A configured FastAPI application instance.
    """
    app = FastAPI(
        title="mix-scheduler admission webhook",
        description="Spreads workloads across spot and on-demand nodes at admission time.",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )
    app.include_router(admission.router, tags=["Admission"])
    app.include_router(health.router, tags=["Health"])
    return app


def serve(
    host: Optional[str] = None,
    port: Optional[int] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> None:
    """Runs the webhook under uvicorn, with TLS when the certificate and key exist."""
    host = host or config.API_HOST
    port = port or config.PORT
    cert_file = cert_file or config.TLS_CERT_FILE
    key_file = key_file or config.TLS_KEY_FILE

    ssl_options = {}
    if os.path.isfile(cert_file) and os.path.isfile(key_file):
        ssl_options = {"ssl_certfile": cert_file, "ssl_keyfile": key_file}
    else:
        logger.warning("TLS certificate or key not found (%s, %s); serving plain HTTP.", cert_file, key_file)

    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(create_app(use_lifespan=True), host=host, port=port, log_level=config.LOG_LEVEL.lower(), **ssl_options)


def main():
    """Entry point for the mixsched-webhook console script."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    config.validate_instance()
    serve()
