import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from loyaltyapi import containers
from loyaltyapi.config import Settings
from loyaltyapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_storage_error,
    handle_unexpected_error,
    handle_validation_error,
)
from loyaltyapi.core.exceptions import BaseAPIException
from loyaltyapi.core.logging_middleware import LoggingMiddleware
from loyaltyapi.database.schema import create_tables
from loyaltyapi.logging_config import setup_logging
from loyaltyapi.routers import (
    admin_router,
    health_router,
    point_router,
    redemption_router,
    reward_router,
)

load_dotenv("loyaltyapi/.env")

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.container.config.config()
    if settings.AUTO_CREATE_TABLES:
        create_tables(app.container.database.engine())
        logger.info("Database tables ensured")
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    container = containers.Container()
    if settings is not None:
        container.config.config.override(settings)
    settings = container.config.config()

    setup_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.container = container  # type: ignore

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router, prefix=settings.API_V1_STR)
    app.include_router(point_router.router, prefix=settings.API_V1_STR)
    app.include_router(reward_router.router, prefix=settings.API_V1_STR)
    app.include_router(redemption_router.router, prefix=settings.API_V1_STR)
    app.include_router(redemption_router.admin_router, prefix=settings.API_V1_STR)
    app.include_router(admin_router.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
