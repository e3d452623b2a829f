"""Application composition root -- wires all layers into a runnable FastAPI app.

- Reads configuration from environment variables
- Loads and validates the intent/flow configuration (fails fast on errors)
- Instantiates the engine, session store and follow-up scheduler
- Mounts the assistant REST and WebSocket routers

Entry point: uvicorn golpac_ai.main:app --host 127.0.0.1 --port 8765
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from golpac_ai.brain.engine.assistant import AssistantEngine
from golpac_ai.brain.engine.followup import FollowUpScheduler
from golpac_ai.brain.engine.session import SessionStore
from golpac_ai.brain.engine.ws_handler import AssistantWSHandler
from golpac_ai.brain.intent.config import load_config
from golpac_ai.brain.metrics.sli import AssistantSLI
from golpac_ai.gateway.api.assistant import create_assistant_router
from golpac_ai.gateway.app import create_app
from golpac_ai.gateway.ws.assistant import create_ws_router

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

SESSION_PURGE_INTERVAL_SECONDS = 60.0


async def _purge_sessions(sessions: SessionStore, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = sessions.purge_expired()
        if removed:
            logger.debug("Purged %d idle sessions", removed)


def build_app() -> FastAPI:
    """Build the application: load config, wire dependencies, mount routers.

    This function is the single composition root. All DI wiring happens here.
    """
    # -- Configuration from environment --
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    config = load_config(os.environ.get("GOLPAC_AI_INTENTS_PATH") or None)
    timeout_raw = os.environ.get("GOLPAC_AI_SESSION_TIMEOUT_SECONDS", "")
    timeout_seconds = (
        float(timeout_raw) if timeout_raw else config.calibration.session_timeout_seconds
    )
    cors_origins_raw = os.environ.get("CORS_ORIGINS", "")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    # -- Brain layer --
    sli = AssistantSLI()
    engine = AssistantEngine(config=config, sli=sli)
    sessions = SessionStore(
        timeout_seconds=timeout_seconds,
        history_limit=config.calibration.history_limit,
    )
    scheduler = FollowUpScheduler()
    recent_limit = config.calibration.recent_corpus_size
    ws_handler = AssistantWSHandler(engine, sessions, scheduler, recent_limit=recent_limit)

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        purge = asyncio.create_task(
            _purge_sessions(sessions, SESSION_PURGE_INTERVAL_SECONDS),
        )
        logger.info("Assistant ready: %d intents configured", len(config.intents))
        try:
            yield
        finally:
            purge.cancel()
            cancelled = scheduler.cancel_all()
            logger.info("Assistant shutdown: %d pending follow-ups cancelled", cancelled)

    # -- Gateway layer --
    application = create_app(cors_origins=cors_origins, lifespan=lifespan)
    application.state.sessions = sessions
    application.state.scheduler = scheduler

    application.include_router(
        create_assistant_router(engine=engine, sessions=sessions, recent_limit=recent_limit),
    )
    application.include_router(
        create_ws_router(handler=ws_handler, scheduler=scheduler),
    )

    logger.info(
        "Golpac AI app assembled: %d routes mounted",
        len(application.routes),
    )
    return application


app = build_app()
