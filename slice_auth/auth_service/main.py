from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from .accounts import AccountManager
from .config import Settings, load_settings
from .db import create_db_engine, create_session_factory, init_db
from .errors import AuthServiceError, ValidationError
from .events import EventPublisher
from .middleware import register_middleware
from .routes import accounts, health
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and flush events left pending by a previous run."""
    init_db(app.state.engine)
    delivered = app.state.accounts.dispatch_events()
    if delivered:
        logger.info("Delivered %d pending events from a previous run", delivered)
    logger.info("Auth service ready port=%s", app.state.settings.PORT)
    yield
    if app.state.owns_engine:
        app.state.engine.dispose()


def create_app(settings: Settings, engine: Optional[Engine] = None) -> FastAPI:
    owns_engine = engine is None
    engine = engine or create_db_engine(settings)
    session_factory = create_session_factory(engine)
    publisher = EventPublisher(engine)

    app = FastAPI(title="Auth Service", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.owns_engine = owns_engine
    app.state.session_factory = session_factory
    app.state.accounts = AccountManager.from_settings(settings, session_factory, publisher)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middleware(app)

    @app.exception_handler(AuthServiceError)
    async def auth_service_error_handler(request: Request, exc: AuthServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        issues = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        logger.warning("Validation failed path=%s method=%s issues=%s", request.url.path, request.method, issues)
        error = ValidationError()
        return JSONResponse(status_code=error.status_code, content={**error.to_dict(), "issues": issues})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error path=%s method=%s", request.url.path, request.method)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    app.include_router(accounts.router)
    app.include_router(accounts.router, prefix="/auth")
    app.include_router(health.router)

    return app


def get_application() -> FastAPI:
    """Entry point for `uvicorn --factory`; settings come from the environment."""
    settings = load_settings()
    configure_logging(settings)
    return create_app(settings)
