"""
Service-wide exception hierarchy.

Services raise these; ``grc.utils.errors.register_error_handlers`` maps each
type to one HTTP status and error code, so blueprints never translate errors
themselves.

Usage:
    from grc.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Workshop", resource_id="WS-2025-03")
    raise ValidationError("riskId is required", details={"riskId": "required"})
"""


class GRCError(Exception):
    """Base class for every error raised deliberately by the service layer."""


class ValidationError(GRCError):
    """Malformed or missing input. Always caller-fixable.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names (or
                 ``"errors"`` for a flat list from the validation layer).
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class NotFoundError(GRCError):
    """A referenced workshop, risk or treatment does not exist.

    Args:
        resource: Entity name ("Workshop", "Risk", "Treatment").
        resource_id: The natural key that was looked up.
        message: Optional override for the default "<resource> <id> not found".
    """

    def __init__(
        self,
        resource: str,
        resource_id: str | int | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message)


class PhaseMismatchError(GRCError):
    """A risk's lifecycle phase is incompatible with the requested agenda topic."""

    def __init__(self, risk_id: str, phase: str | None, topic: str, message: str | None = None) -> None:
        self.risk_id = risk_id
        self.phase = phase
        self.topic = topic
        super().__init__(
            message
            or f'Risk {risk_id} in "{phase}" phase cannot be added to {topic}.'
        )


class InvalidStateError(GRCError):
    """An entity is in a state that forbids the operation.

    Covers a closed workshop window (status/date) and a treatment whose
    closure approval is no longer Pending.
    """

    def __init__(self, message: str, *, entity: str | None = None, state: str | None = None) -> None:
        self.entity = entity
        self.state = state
        super().__init__(message)


class DuplicateEntryError(GRCError):
    """A value that must be unique within its scope already exists.

    Args:
        resource: Entity or collection name.
        field: The field that would be duplicated.
        value: The conflicting value.
        message: Optional override for the default message.
    """

    def __init__(self, resource: str, field: str, value: str | None = None, message: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class ConflictError(GRCError):
    """A conditional write matched nothing although the prior read succeeded.

    The caller's view is stale; it must re-fetch and re-decide rather than
    retry blindly.
    """

    def __init__(self, resource: str, resource_id: str | int | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} changed or vanished during update")


class StoreError(GRCError):
    """Unexpected store/connectivity failure. Details are logged, never returned."""
