import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import auth
import tasks
from config import ConfigError, Settings, load_settings
from database import init_db, make_engine, make_session_factory
from errors import SECURITY_HEADERS, register_error_handlers
from logging_setup import setup_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _terminate_on_loop_fault(loop, context):
    # exceptions nobody awaited end the process
    logger.critical("Unhandled event loop fault: %s", context.get("message"), exc_info=context.get("exception"))
    os._exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if app.state.exit_on_loop_fault:
        asyncio.get_running_loop().set_exception_handler(_terminate_on_loop_fault)
    logger.info("Environment: %s", settings.environment)
    if settings.is_development:
        logger.info("CORS enabled for: all origins (dev mode)")
    else:
        logger.info("CORS enabled for: %s", ", ".join(settings.cors_origins) or "no origins")
    yield
    app.state.engine.dispose()
    logger.info("Database connection closed")


def create_app(settings: Settings, exit_on_loop_fault: bool = False) -> FastAPI:
    engine = make_engine(settings.database_url)
    init_db(engine)

    app = FastAPI(title="Task Manager API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.exit_on_loop_fault = exit_on_loop_fault
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.pwd_context = auth.make_password_context(settings.bcrypt_rounds)

    if settings.is_development:
        cors_kwargs = {"allow_origins": ["*"]}
    else:
        cors_kwargs = {"allow_origins": list(settings.cors_origins)}
    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        **cors_kwargs,
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {
            "success": True,
            "data": {
                "message": "Backend API is running",
                "environment": settings.environment,
                "version": VERSION,
            },
        }

    app.include_router(auth.router)
    app.include_router(tasks.router)
    return app


def run(env: Optional[dict] = None) -> None:
    """Console entry point: load config, fail fast when it is incomplete, serve."""
    import uvicorn

    try:
        settings = load_settings(env)
    except ConfigError as e:
        setup_logging()
        logger.error("Error: %s", e)
        sys.exit(1)

    setup_logging(settings.log_level)
    try:
        app = create_app(settings, exit_on_loop_fault=True)
    except Exception:
        logger.exception("Failed to start server")
        sys.exit(1)

    logger.info("Server is running on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
