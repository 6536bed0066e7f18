"""
Main FastAPI application entry point.
Configures the application, middleware, and routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from app.api.routes import auth, health, upgrade_requests, users
from app.core.config import settings
from app.core.exceptions import AppError, register_exception_handlers
from app.core.logging import get_logger, setup_logging
from app.db.session import engine, init_db
from app.models.user import Role
from app.services.user_service import UserService

# Setup logging
setup_logging()
logger = get_logger(__name__)


def bootstrap_superuser() -> None:
    """Create the first admin account if it doesn't exist."""
    with Session(engine) as session:
        users = UserService(session)
        if users.get_by_email(settings.FIRST_SUPERUSER_EMAIL):
            return

        logger.info("Creating first superuser...")
        try:
            users.create_user(
                email=settings.FIRST_SUPERUSER_EMAIL,
                first_name="Admin",
                last_name="User",
                password=settings.FIRST_SUPERUSER_PASSWORD,
                role=Role.ADMIN,
            )
            logger.info(f"Superuser created: {settings.FIRST_SUPERUSER_EMAIL}")
        except AppError as e:
            logger.error(f"Failed to create superuser: {e.message}")
            logger.warning("Continuing without superuser. Admin endpoints will be unreachable.")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Runs startup and shutdown logic.
    """
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")

    logger.info("Creating database tables...")
    init_db(engine)

    if not settings.DISABLE_BOOTSTRAP_USERS:
        bootstrap_superuser()
    else:
        logger.info("User bootstrapping disabled (DISABLE_BOOTSTRAP_USERS=true)")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
    lifespan=lifespan,
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "content-type", "accept"],
    )

register_exception_handlers(app)

app.include_router(health.router, prefix=settings.API_V1_PREFIX)
app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
app.include_router(users.router, prefix=settings.API_V1_PREFIX)
app.include_router(upgrade_requests.router, prefix=settings.API_V1_PREFIX)
