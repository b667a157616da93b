# Overview: Transaction helpers shared by services (atomic writes, row locking).

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..exceptions import ConflictError
from ..extensions import db
from ..validation import is_unique_violation


def lock_for_update(query):
    """
    Apply row-level locking for stock changes.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic(conflict_message: str | None = None):
    """
    Run the block as one database transaction.

    Commits on success. Any exception rolls back everything written inside
    the block; unique-constraint violations surface as ConflictError.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if is_unique_violation(exc):
            raise ConflictError(conflict_message) from exc
        raise
    except Exception:
        db.session.rollback()
        raise
