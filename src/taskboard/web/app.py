"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.identity import IdentityResolver, verify_identity
from .config import WebConfig
from .realtime.service import SyncService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan: init DB, seed demo users, tear down live connections on exit."""
    config: WebConfig = app.state.config

    from .auth.service import configure

    configure(config)

    from .db.database import close_db, get_db, init_db

    await init_db(config.db_path)

    if config.env == "development":
        from .db.seed import seed_db

        await seed_db(await get_db())

    logger.info("Sync layer ready on ws://%s:%d/ws", config.host, config.port)

    yield

    app.state.sync.shutdown()
    await close_db()


def create_app(
    config: WebConfig | None = None,
    resolver: IdentityResolver | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or WebConfig.load()

    app = FastAPI(
        title="Taskboard Sync",
        description="Real-time synchronization for the collaborative task board",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.sync = SyncService()
    app.state.identity_resolver = resolver or verify_identity

    # CORS
    origins = config.cors_origins or [
        "http://localhost",
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from .realtime.router import router as realtime_router

    app.include_router(realtime_router)

    # Error handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
