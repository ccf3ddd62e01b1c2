from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from src.infra.config.settings import settings
from src.infra.config.redis import close_redis_pool
from src.infra.database import get_database_manager
from src.core.logger.logger import logger
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Application startup",
        extra={"app_name": settings.APP_NAME, "version": settings.APP_VERSION}
    )
    yield
    await get_database_manager().close()
    await close_redis_pool()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """
    Application shell for the account services.
    Routers are mounted by the request-handling layer; this registers the
    shared error envelope and resource cleanup.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="SixNumber account, session and charging services",
        version=settings.APP_VERSION,
        lifespan=lifespan
    )

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    return app
