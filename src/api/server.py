"""FastAPI server for the uptime monitor."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.config import settings
from src.monitor.errors import PersistenceFailure, ValidationFailure
from src.monitor.prober import Prober
from src.monitor.recorder import Recorder
from src.monitor.scheduler import MonitorScheduler
from src.monitor.seed import load_seed_targets
from src.monitor.service import UptimeService
from src.monitor.store import MonitorStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared resources on startup."""
    # Store — FatalFailure here aborts startup
    store = MonitorStore(settings.db_path)
    app.state.store = store
    logger.info("Monitor store opened at %s", settings.db_path)

    try:
        load_seed_targets(store, settings.targets_file)
    except PersistenceFailure:
        logger.exception("Failed to seed targets from %s", settings.targets_file)

    app.state.service = UptimeService(store, success_status=settings.success_status)

    prober = Prober(timeout=settings.probe_timeout)
    scheduler = MonitorScheduler(
        store,
        prober,
        Recorder(store),
        interval=float(settings.check_interval),
        wake_offset=settings.wake_offset,
        max_concurrency=settings.max_concurrent_probes,
        success_status=settings.success_status,
    )
    app.state.scheduler = scheduler
    await scheduler.start()

    yield

    # Shutdown
    await scheduler.stop()
    await prober.close()
    store.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Vigil - Uptime Monitor",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
        logger.error("Store error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    app.include_router(router, prefix="/api")

    return app


app = create_app()
