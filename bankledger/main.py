from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bankledger.api.errors import add_error_handlers
from bankledger.api.routers import api_router
from bankledger.core.config import Settings, get_settings
from bankledger.core.log_config import configure_logging
from bankledger.db.init_db import ensure_schema, ensure_seed_data
from bankledger.db.session import build_engine, build_session_factory
from bankledger.transfers.engine import TransferEngine

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its own engine, session factory and transfer engine."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    db_engine = build_engine(settings)
    session_factory = build_session_factory(db_engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_schema(db_engine, settings)
        if settings.seed_demo_data:
            db = session_factory()
            try:
                ensure_seed_data(db)
            finally:
                db.close()
        logger.info("bankledger started")
        yield
        db_engine.dispose()

    app = FastAPI(title="bankledger API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db_engine = db_engine
    app.state.session_factory = session_factory
    app.state.transfer_engine = TransferEngine(settings)

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_error_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app
