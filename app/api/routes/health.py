"""
Liveness and readiness routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.user import Role
from app.services.permission_registry import permission_registry

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

REQUIRED_TABLES = (
    "users",
    "permission_assignments",
    "upgrade_requests",
    "audit_events",
)


@router.get("/health")
def health_check() -> dict:
    """
    Liveness check. Also reports whether every role has a default
    permission set, since authorization is meaningless without one.
    """
    missing_roles = [role.value for role in Role if role not in permission_registry.roles()]
    return {
        "status": "healthy" if not missing_roles else "degraded",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "roles": len(Role) - len(missing_roles),
        "permissions": len(permission_registry.all_permissions()),
    }


@router.get("/health/db")
def database_health_check(session: Session = Depends(get_session)) -> dict:
    """
    Readiness check: the database answers and the access-control tables exist.
    """
    try:
        connection = session.connection()
        connection.execute(text("SELECT 1"))
        existing = set(inspect(connection).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e),
        }

    missing = [name for name in REQUIRED_TABLES if name not in existing]
    if missing:
        logger.warning(f"Database is missing tables: {', '.join(missing)}")
    return {
        "status": "healthy" if not missing else "unhealthy",
        "database": "ok",
        "missing_tables": missing,
    }
