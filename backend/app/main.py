"""
FastAPI application entry point.

Serves the personalized feed, profile edits, interactions and the
cluster catalogue. Uses structured logging from repoverse.logging.
"""

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from repoverse import __version__
from repoverse.config import get_settings
from repoverse.db import db
from repoverse.logging import RequestLoggingMiddleware, configure_logging, get_logger
from repoverse.repositories import ClusterRepository

from .error_handlers import register_exception_handlers
from .routers import clusters as clusters_router
from .routers import feed as feed_router
from .routers import interactions as interactions_router
from .routers import profiles as profiles_router
from .routers import users as users_router

settings = get_settings()
configure_logging(level="DEBUG" if settings.debug else "INFO", role="api")
logger = get_logger("api")


def init_database() -> None:
    """Initialize the database once per process and seed the cluster catalogue."""
    if not db.is_initialized:
        db.initialize(settings.database_url)
    db.create_all_tables()
    with db.session() as session:
        ClusterRepository(session).ensure_catalogue()
    logger.info("database_initialized")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, version=__version__, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        logger.info("app_startup", app_name=settings.app_name)

        errors, warnings = settings.validate_production_config()
        for warning in warnings:
            logger.warning("config_warning", message=warning)
        for error in errors:
            logger.error("config_error", message=error)

        init_database()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("app_shutdown")

    @app.get("/health", tags=["health"])
    def health_check():
        """
        Liveness and database readiness.

        Returns 200 when the database answers, 503 otherwise.
        """
        database = db.health_check()
        if not database["healthy"]:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "database": database},
            )
        return {"status": "ok", "version": __version__, "database": database}

    app.include_router(feed_router.router, prefix=settings.api_prefix)
    app.include_router(profiles_router.router, prefix=settings.api_prefix)
    app.include_router(interactions_router.router, prefix=settings.api_prefix)
    app.include_router(users_router.router, prefix=settings.api_prefix)
    app.include_router(clusters_router.router, prefix=settings.api_prefix)

    return app


app = create_app()
