"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging

from realty_api.config import Settings, get_settings
from realty_api.database import Database
from realty_api.routers import properties_router, users_router
from realty_api.routers.properties import TOTAL_COUNT_HEADER
from realty_api.services.media import MediaService
from realty_api.services.error_handler import ErrorHandlerService
from realty_api.middleware.validation import ValidationMiddleware
from realty_api.utils.exceptions import APIException, ServiceUnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Connects to MongoDB on startup; a failed connection aborts startup.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    try:
        await database.connect()
    except PyMongoError as e:
        logger.critical(f"Failed to connect to database on startup: {e}")
        raise RuntimeError("Database connection could not be established") from e

    yield

    logger.info("Shutting down application")
    await database.disconnect()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    media_service: Optional[MediaService] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings, read from the environment when omitted
        database: Database gateway, built from settings when omitted
        media_service: Media upload adapter, built from settings when omitted

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()

    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
    REST backend for property listings and the users who create them.

    ## Features

    * **Properties**: list with filters, sorting and pagination; create, fetch, partially update and delete
    * **Users**: list, fetch and create-or-fetch by email (also served under /agents)
    * **Images**: property photos are hosted on Cloudinary
    """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "Properties",
                "description": "Property listing management"
            },
            {
                "name": "Users",
                "description": "Users and the properties they own"
            },
            {
                "name": "Health",
                "description": "System health endpoints"
            }
        ],
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database(settings)
    app.state.media_service = media_service or MediaService(settings)

    app.add_middleware(
        ValidationMiddleware,
        max_request_size=settings.max_request_size,
        enable_request_logging=settings.debug
    )

    # Outermost middleware, so size rejections carry CORS headers too
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=[TOTAL_COUNT_HEADER, "X-Request-ID"],
    )

    prefix = settings.api_v1_prefix
    app.include_router(properties_router, prefix=prefix)
    app.include_router(users_router, prefix=f"{prefix}/users")
    app.include_router(users_router, prefix=f"{prefix}/agents", include_in_schema=False)

    register_exception_handlers(app)
    register_health_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Global exception handlers using ErrorHandlerService."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        return ErrorHandlerService.handle_api_exception(exc, request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return ErrorHandlerService.handle_validation_error(exc, request)

    @app.exception_handler(PyMongoError)
    async def database_exception_handler(request: Request, exc: PyMongoError):
        return ErrorHandlerService.handle_database_error(exc, request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return ErrorHandlerService.handle_http_exception(exc, request)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        return ErrorHandlerService.handle_unexpected_error(exc, request)


def register_health_routes(app: FastAPI) -> None:

    @app.get("/", tags=["Health"], response_class=PlainTextResponse)
    async def root():
        return "Hello, World!"

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint with database connectivity test.
        Used by container health checks and load balancers.
        """
        settings: Settings = request.app.state.settings
        database: Database = request.app.state.database

        if not await database.ping():
            raise ServiceUnavailableError("Database connection failed")

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "database": "connected"
        }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "realty_api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
