"""
Unit of Work over a SQLModel session.

Groups several writes into one transaction: all of them commit, or none do.

Usage:
    with UnitOfWork(session):
        session.delete(old_profile)
        session.add(new_profile)

Units nest. Only the outermost unit commits; an exception anywhere rolls
back the whole outer transaction. Storage uniqueness violations surface as
``ConflictError``.
"""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.exceptions import ConflictError
from app.core.logging import get_logger

logger = get_logger(__name__)

_DEPTH_KEY = "unit_of_work_depth"


class UnitOfWork:
    """Transaction scope: commit on clean exit, rollback on error."""

    def __init__(self, session: Session):
        self.session = session

    @property
    def depth(self) -> int:
        return self.session.info.get(_DEPTH_KEY, 0)

    @property
    def is_outermost(self) -> bool:
        return self.depth == 1

    def __enter__(self) -> "UnitOfWork":
        self.session.info[_DEPTH_KEY] = self.depth + 1
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        outermost = self.is_outermost
        self.session.info[_DEPTH_KEY] = self.depth - 1

        if exc_type is not None:
            if outermost:
                logger.debug(f"Rolling back unit of work after {exc_type.__name__}")
                self.session.rollback()
            if isinstance(exc, IntegrityError):
                raise self._conflict(exc) from exc
            return False

        if not outermost:
            # Surface constraint violations at the point they happen
            self.flush()
            return False

        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise self._conflict(e) from e
        return False

    def flush(self) -> None:
        """Flush pending writes so storage constraints are checked now."""
        self.session.flush()

    @staticmethod
    def _conflict(error: IntegrityError) -> ConflictError:
        logger.warning(f"Uniqueness constraint violated: {error.orig}")
        return ConflictError("Conflicting record already exists")
