"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from mindtoss.transports import build_relay_transport
from mindtoss_api.config import Settings
from mindtoss_api.db.engine import Database

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create the DB engine and relay client. Shutdown: dispose."""
    settings: Settings = app.state.settings
    db = Database(settings)
    if settings.create_tables:
        await db.create_tables()
    app.state.db = db
    transport = build_relay_transport(settings.relay)
    await transport.start()
    app.state.transport = transport
    logger.info("database_engine_created", url=db.engine.url.render_as_string(hide_password=True))
    logger.info("relay_transport_ready", provider=transport.name, configured=transport.configured)
    yield
    await transport.stop()
    await db.close()
    logger.info("shutdown_complete")


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"Invalid request: {field} {first.get('msg', '')}".strip() if field else "Invalid request."
    return JSONResponse(status_code=422, content={"error": message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="MindToss Backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "content-type"],
    )
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

    from mindtoss_api.routers.account import router as account_router
    from mindtoss_api.routers.auth import router as auth_router
    from mindtoss_api.routers.email import router as email_router
    from mindtoss_api.routers.state import router as state_router

    app.include_router(auth_router)
    app.include_router(account_router)
    app.include_router(state_router)
    app.include_router(email_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "mindtoss-backend"}

    return app
