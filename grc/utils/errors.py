"""Standardised API error responses.

Usage
-----
    from grc.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Workshop not found")
    return api_error(E.VALIDATION_REQUIRED, "riskId is required")

``register_error_handlers(app)`` wires the service exception hierarchy to
these responses once for the whole application.
"""

from __future__ import annotations

import logging

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from grc.core.exceptions import (
    ConflictError,
    DuplicateEntryError,
    InvalidStateError,
    NotFoundError,
    PhaseMismatchError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Rule engine – HTTP 400
    PHASE_MISMATCH = "ERR_PHASE_MISMATCH"
    INVALID_STATE = "ERR_INVALID_STATE"
    DUPLICATE_ENTRY = "ERR_DUPLICATE_ENTRY"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Server – HTTP 500
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.PHASE_MISMATCH: 400,
    E.INVALID_STATE: 400,
    E.DUPLICATE_ENTRY: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_STATE: 500,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation, always present as ``error``.
    status : int, optional
        HTTP status override. Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors etc.).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def api_success(data=None, *, message: str | None = None, status: int = 200, **extra):
    """Return the success envelope ``{success, message?, data?, **extra}``."""
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def register_error_handlers(app):
    """Map service exceptions to HTTP responses for every blueprint."""

    @app.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @app.errorhandler(PhaseMismatchError)
    def _handle_phase_mismatch(error: PhaseMismatchError):
        return api_error(E.PHASE_MISMATCH, str(error))

    @app.errorhandler(InvalidStateError)
    def _handle_invalid_state(error: InvalidStateError):
        return api_error(E.INVALID_STATE, str(error))

    @app.errorhandler(DuplicateEntryError)
    def _handle_duplicate(error: DuplicateEntryError):
        return api_error(E.DUPLICATE_ENTRY, str(error))

    @app.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        logger.error("Stale write on %s endpoint=%s: %s", error.resource, request.endpoint, error)
        return api_error(E.CONFLICT_STATE, str(error))

    @app.errorhandler(StoreError)
    @app.errorhandler(SQLAlchemyError)
    def _handle_store(error: Exception):
        logger.exception("Store error in endpoint=%s", request.endpoint)
        return api_error(E.DATABASE, "Internal server error")

    @app.errorhandler(404)
    def _not_found(error):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _method_not_allowed(error):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return api_error(E.VALIDATION_INVALID, error.description or error.name, status=error.code)
        logger.exception("Unexpected error in endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
