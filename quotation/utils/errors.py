"""Domain error types raised by the service layer."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class QuotationError(Exception):
    """Base class for errors the API layer translates into HTTP responses."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(QuotationError):
    def __init__(self, message: str = "User is not authenticated"):
        super().__init__(message)


class NotFound(QuotationError):
    def __init__(self, message: str, entity_id: Optional[int] = None):
        super().__init__(message)
        self.entity_id = entity_id


class LockConflict(QuotationError):
    """The entity is being edited by another user.

    Carries the lock holder and lock time so callers can tell the user who is
    editing and since when. Every layer re-raises it unchanged.
    """

    def __init__(
        self,
        message: str,
        entity_id: int,
        locked_by: Optional[int] = None,
        locked_at: Optional[datetime] = None,
        locked_by_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.entity_id = entity_id
        self.locked_by = locked_by
        self.locked_at = locked_at
        self.locked_by_name = locked_by_name


class OperationNotAllowed(QuotationError):
    pass


class OperationFailed(QuotationError):
    """Generic persistence failure. The cause is logged, not exposed."""

    def __init__(self, message: str = "Operation failed"):
        super().__init__(message)


@contextmanager
def persistence_errors(message: str) -> Iterator[None]:
    """Turn storage failures into OperationFailed(message); domain errors pass through."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(message)
        raise OperationFailed(message) from exc
