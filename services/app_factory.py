"""
FastAPI Application Factory

Usage:
    state = AppState(pipeline=pipeline, recorder=recorder, store=store)
    app = create_app(state)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from routes.consensus import router as consensus_router, configure_consensus
from services.app_state import AppState
from services.error_handler import setup_error_handlers

logger = logging.getLogger(__name__)


def create_app(state: AppState) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    State is injected so tests can run the app with fake providers and
    an in-memory benchmark store.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("[STARTUP] Hydra consensus service starting...")
        logger.info(f"[STARTUP] Debug mode: {state.debug_mode}")

        if state.recorder is not None:
            state.recorder.start()

        yield

        logger.info("[SHUTDOWN] Hydra consensus service shutting down...")
        if state.recorder is not None:
            await state.recorder.stop()
        if state.http_client is not None:
            await state.http_client.aclose()
        if state.store is not None:
            state.store.close()
        logger.info(f"[SHUTDOWN] Total requests: {state.stats['total_requests']}")

    app = FastAPI(
        title="Hydra Consensus",
        description="Multi-provider AI valuation consensus with category routing and benchmark scoring",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handlers(app, debug=state.debug_mode)

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "pipeline": state.pipeline is not None,
            "providers": [p.provider_id for p in state.pipeline.providers] if state.pipeline else [],
            "benchmarks": state.recorder.get_stats() if state.recorder else None,
            "total_requests": state.stats["total_requests"],
            "uptime_seconds": round(state.get_session_duration(), 1),
        }

    configure_consensus(state)
    app.include_router(consensus_router)

    return app
