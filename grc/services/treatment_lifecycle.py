"""
Treatment Lifecycle Service: closure approval + extension history.

Closure approval state machine:
    approve: Pending → Approved
    reject:  Pending → Rejected
Approved and Rejected are terminal.

Extension requests append to an ordered, append-only history and keep
``number_of_extensions`` equal to its length. Each extension starts in
"Pending Approval" and is decided once (approve / reject).

Only Pending treatments may be put on a workshop's extensions/closure agenda.

Usage:
    from grc.services.treatment_lifecycle import request_extension

    extension = request_extension(
        "RISK-010", "TREAT-010-01",
        extended_due_date="2026-12-31",
        justification="Vendor patch slipped to Q4",
    )
"""

import logging
from datetime import date

from grc.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from grc.models import _utcnow
from grc.models.treatment import (
    CLOSURE_APPROVED,
    CLOSURE_PENDING,
    CLOSURE_REJECTED,
    EXTENSION_APPROVED,
    EXTENSION_PENDING_APPROVAL,
    EXTENSION_REJECTED,
    Treatment,
    TreatmentExtension,
    get_treatment_by_natural_id,
)
from grc.utils.helpers import commit_or_raise, parse_date_input

logger = logging.getLogger(__name__)


CLOSURE_TRANSITIONS = {
    "approve": {"from": [CLOSURE_PENDING], "to": CLOSURE_APPROVED},
    "reject": {"from": [CLOSURE_PENDING], "to": CLOSURE_REJECTED},
}

EXTENSION_TRANSITIONS = {
    "approve": {"from": [EXTENSION_PENDING_APPROVAL], "to": EXTENSION_APPROVED},
    "reject": {"from": [EXTENSION_PENDING_APPROVAL], "to": EXTENSION_REJECTED},
}


def is_selectable_for_workshop(treatment: Treatment) -> bool:
    return treatment.closure_approval == CLOSURE_PENDING


def available_closure_actions(treatment: Treatment) -> list[str]:
    return [a for a, rule in CLOSURE_TRANSITIONS.items() if treatment.closure_approval in rule["from"]]


def _get_treatment_or_raise(risk_id: str, treatment_id: str) -> Treatment:
    treatment = get_treatment_by_natural_id(risk_id, treatment_id)
    if treatment is None:
        raise NotFoundError("Treatment", treatment_id,
                            message=f"Treatment {treatment_id} not found for risk {risk_id}")
    return treatment


def _require_approver(approver) -> str:
    approver = approver.strip() if isinstance(approver, str) else ""
    if not approver:
        raise ValidationError("approver is required", details={"approver": "required"})
    return approver


def request_extension(
    risk_id: str,
    treatment_id: str,
    extended_due_date,
    justification,
    *,
    today: date | None = None,
) -> dict:
    """
    Append an extension request to a treatment.

    Args:
        risk_id / treatment_id: natural key of the treatment.
        extended_due_date: ISO date (or datetime) string; must be today or later.
        justification: free text, non-empty after trimming.
        today: reference date (defaults to the local date).

    Returns:
        The new extension as a dict.

    Raises:
        ValidationError: missing/unparseable/past date or empty justification.
        NotFoundError: no treatment at (risk_id, treatment_id).
    """
    if not extended_due_date or not justification:
        raise ValidationError("Extended due date and justification are required")
    if not isinstance(justification, str) or not justification.strip():
        raise ValidationError("Justification must be a non-empty string",
                              details={"justification": "required"})
    try:
        new_due = parse_date_input(extended_due_date)
    except ValueError:
        raise ValidationError("Invalid date format", details={"extendedDueDate": str(extended_due_date)})

    today = today or date.today()
    if new_due < today:
        raise ValidationError("Extended due date must be today or a future date",
                              details={"extendedDueDate": new_due.isoformat()})

    treatment = _get_treatment_or_raise(risk_id, treatment_id)

    extension = TreatmentExtension(
        position=len(treatment.extensions),
        extended_due_date=new_due,
        justification=justification.strip(),
        approver=EXTENSION_PENDING_APPROVAL,
        status=EXTENSION_PENDING_APPROVAL,
        date_approved=None,
        created_at=_utcnow(),
    )
    treatment.extensions.append(extension)
    treatment.number_of_extensions = len(treatment.extensions)
    treatment.extended_due_date = new_due
    treatment.updated_at = _utcnow()

    commit_or_raise("Treatment", "treatmentId", treatment_id)
    logger.info(
        "Extension #%d requested for %s/%s until %s",
        treatment.number_of_extensions, risk_id, treatment_id, new_due.isoformat(),
        extra={"risk_id": risk_id, "treatment_id": treatment_id},
    )
    return extension.to_dict()


def decide_closure(risk_id: str, treatment_id: str, decision: str, approver) -> dict:
    """
    Approve or reject a treatment's closure.

    Returns:
        {"treatmentId", "riskId", "previousStatus", "newStatus", "decision"}

    Raises:
        ValidationError: unknown decision or missing approver.
        NotFoundError: treatment missing.
        InvalidStateError: treatment is no longer Pending.
    """
    rule = CLOSURE_TRANSITIONS.get(decision)
    if rule is None:
        raise ValidationError(
            f"Invalid decision: {decision!r}. Must be one of: {', '.join(CLOSURE_TRANSITIONS)}",
            details={"decision": decision},
        )
    approver = _require_approver(approver)
    treatment = _get_treatment_or_raise(risk_id, treatment_id)

    if treatment.closure_approval not in rule["from"]:
        raise InvalidStateError(
            f"Cannot '{decision}' closure of treatment {treatment_id} "
            f'(closureApproval="{treatment.closure_approval}")',
            entity=treatment_id,
            state=treatment.closure_approval,
        )

    previous = treatment.closure_approval
    treatment.closure_approval = rule["to"]
    treatment.closure_approved_by = approver
    treatment.date_closure_approved = date.today()
    treatment.updated_at = _utcnow()

    commit_or_raise("Treatment", "treatmentId", treatment_id)
    logger.info("Closure of %s/%s %s by %s (%s → %s)",
                risk_id, treatment_id, decision, approver, previous, treatment.closure_approval,
                extra={"risk_id": risk_id, "treatment_id": treatment_id})
    return {
        "treatmentId": treatment.treatment_id,
        "riskId": treatment.risk_id,
        "previousStatus": previous,
        "newStatus": treatment.closure_approval,
        "decision": decision,
    }


def decide_extension(risk_id: str, treatment_id: str, index: int, decision: str, approver) -> dict:
    """Approve or reject the extension at 0-based ``index``."""
    rule = EXTENSION_TRANSITIONS.get(decision)
    if rule is None:
        raise ValidationError(
            f"Invalid decision: {decision!r}. Must be one of: {', '.join(EXTENSION_TRANSITIONS)}",
            details={"decision": decision},
        )
    approver = _require_approver(approver)
    treatment = _get_treatment_or_raise(risk_id, treatment_id)

    if index < 0 or index >= len(treatment.extensions):
        raise NotFoundError("Extension", index,
                            message=f"Extension {index} not found for treatment {treatment_id}")
    extension = treatment.extensions[index]
    if extension.status not in rule["from"]:
        raise InvalidStateError(
            f"Cannot '{decision}' extension {index} of treatment {treatment_id} "
            f'(status="{extension.status}")',
            entity=treatment_id,
            state=extension.status,
        )

    extension.status = rule["to"]
    extension.approver = approver
    extension.date_approved = date.today()
    treatment.updated_at = _utcnow()

    commit_or_raise("Treatment", "treatmentId", treatment_id)
    logger.info("Extension %d of %s/%s %s by %s", index, risk_id, treatment_id, decision, approver,
                extra={"risk_id": risk_id, "treatment_id": treatment_id})
    return extension.to_dict()
