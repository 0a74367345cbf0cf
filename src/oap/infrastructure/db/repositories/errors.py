from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from oap.application.ports.repositories import PersistenceError


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise storage failures as ``PersistenceError`` so callers never see SQLAlchemy."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{operation} failed: {exc.__class__.__name__}") from exc
