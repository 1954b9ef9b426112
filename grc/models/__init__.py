"""
GRC Risk Workflow Service
SQLAlchemy extension + shared model helpers.

Every model module imports ``db`` from here:

    from grc.models import db
"""

from datetime import date, datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    """ISO-8601 string for a date/datetime column, None when unset."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
