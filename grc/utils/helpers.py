"""Shared utility functions for services.

parse_date:      returns None on bad input
parse_date_input: raises ValueError on bad input
commit_or_raise: commit the session, translating store failures into
                 the service exception hierarchy
"""
import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from grc.core.exceptions import DuplicateEntryError, StoreError
from grc.models import db

logger = logging.getLogger(__name__)


def parse_date(value):
    """Parse a date string to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS[.fff][Z|±HH:MM] (datetime ISO → .date())
    - DD.MM.YYYY
    """
    try:
        return parse_date_input(value)
    except ValueError:
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None.
    An offset-aware datetime string is converted to the server's local date
    before time-of-day is dropped.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date value: {value!r}")
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d.%m.%Y").date()
    except ValueError as exc:
        raise ValueError(
            f"Invalid date format: {value!r}. Use YYYY-MM-DD or DD.MM.YYYY."
        ) from exc


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise(resource: str = "Record", field: str = "id", value=None):
    """Commit the current SQLAlchemy session or raise a service exception.

    IntegrityError → DuplicateEntryError (unique constraint violation)
    Other SQLAlchemyError → StoreError (connection / lock issues)

    The session is rolled back before raising, so no partial write survives.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit (%s %s=%r): %s", resource, field, value, exc.orig)
        raise DuplicateEntryError(resource, field, value) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Database error on commit (%s)", resource)
        raise StoreError("Database error") from exc
