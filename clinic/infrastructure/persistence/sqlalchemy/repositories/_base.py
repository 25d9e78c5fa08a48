import logging
from contextlib import contextmanager
from typing import Any, Dict
from .....core.clock import utc_now

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from .....database import SLOT_GUARD_MARKERS
from .....exceptions import PersistenceError, SlotConflict

logger = logging.getLogger(__name__)


@contextmanager
def storage_call(session: Session, what: str):
    """Translate driver faults into domain errors. Nothing is retried."""
    try:
        yield
    except IntegrityError as e:
        session.rollback()
        if any(marker in str(e.orig) for marker in SLOT_GUARD_MARKERS):
            raise SlotConflict()
        logger.error(f"Integrity error while trying to {what}: {e.orig}")
        raise PersistenceError(f"Failed to {what}")
    except SQLAlchemyError:
        session.rollback()
        logger.error(f"Storage error while trying to {what}", exc_info=True)
        raise PersistenceError(f"Failed to {what}")


def apply_patch(row: Any, patch: Dict[str, Any]) -> None:
    for key, value in patch.items():
        if not hasattr(row, key):
            raise ValueError(f"Unknown column {key}")
        setattr(row, key, value)
    if hasattr(row, "updated_at"):
        row.updated_at = utc_now()


def save(session: Session, row: Any, what: str) -> Any:
    """Stage a row in the caller's transaction.

    Constraint and trigger violations fire here on flush. The commit happens
    when the audit entry for the change is written.
    """
    with storage_call(session, what):
        session.add(row)
        session.flush()
        session.refresh(row)
    return row


def remove(session: Session, row: Any, what: str) -> None:
    with storage_call(session, what):
        session.delete(row)
        session.flush()


def commit(session: Session, what: str) -> None:
    with storage_call(session, what):
        session.commit()
