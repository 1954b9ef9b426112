"""Treatment service layer: CRUD keyed by (riskId, treatmentId).

Closure approval and extensions are owned by ``treatment_lifecycle``; plain
updates here refuse to touch them so ``numberOfExtensions`` always matches
the extension history.
"""
import logging

from sqlalchemy import select

from grc.core.exceptions import DuplicateEntryError, NotFoundError, ValidationError
from grc.models import _utcnow, db
from grc.models.risk import get_risk_by_natural_id, risk_number
from grc.models.treatment import (
    CLOSURE_PENDING,
    TREATMENT_ID_PATTERN,
    Treatment,
    get_treatment_by_natural_id,
)
from grc.services.validation import validate_treatment
from grc.utils.helpers import commit_or_raise, parse_date

logger = logging.getLogger(__name__)

_TEXT_FIELDS = {
    "treatmentJiraTicket": "treatment_jira_ticket",
    "riskTreatment": "risk_treatment",
    "riskTreatmentOwner": "risk_treatment_owner",
    "notes": "notes",
}
_DATE_FIELDS = {
    "dateRiskTreatmentDue": "date_risk_treatment_due",
    "completionDate": "completion_date",
}
# Owned by the lifecycle service
_LIFECYCLE_FIELDS = (
    "closureApproval",
    "closureApprovedBy",
    "dateClosureApproved",
    "extensions",
    "numberOfExtensions",
    "extendedDueDate",
)


def _apply_fields(treatment: Treatment, data: dict) -> None:
    for key, attr in _TEXT_FIELDS.items():
        if key in data:
            setattr(treatment, attr, (data[key] or "").strip() if isinstance(data[key], str) else "")
    for key, attr in _DATE_FIELDS.items():
        if key in data:
            setattr(treatment, attr, parse_date(data[key]))


def next_treatment_id(risk_id: str) -> str:
    """TREAT-<risknum>-<seq>: next two-digit sequence for this risk."""
    num = risk_number(risk_id) or risk_id.rsplit("-", 1)[-1]
    highest = 0
    for (tid,) in db.session.execute(
        select(Treatment.treatment_id).where(Treatment.risk_id == risk_id)
    ).all():
        m = TREATMENT_ID_PATTERN.match(tid or "")
        if m:
            highest = max(highest, int(m.group(2)))
    return f"TREAT-{num}-{highest + 1:02d}"


def get_treatment(risk_id: str, treatment_id: str) -> Treatment:
    treatment = get_treatment_by_natural_id(risk_id, treatment_id)
    if treatment is None:
        raise NotFoundError("Treatment", treatment_id, message="Treatment not found")
    return treatment


def list_treatments(risk_id: str | None = None) -> list[Treatment]:
    stmt = select(Treatment)
    if risk_id:
        stmt = stmt.where(Treatment.risk_id == risk_id)
    return db.session.execute(stmt.order_by(Treatment.risk_id, Treatment.treatment_id)).scalars().all()


def create_treatment(data: dict) -> Treatment:
    """Create a Pending treatment with an empty extension history."""
    errors = validate_treatment(data)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    risk_id = data["riskId"].strip()
    if get_risk_by_natural_id(risk_id) is None:
        raise NotFoundError("Risk", risk_id, message="Risk not found")

    treatment_id = (data.get("treatmentId") or "").strip() or next_treatment_id(risk_id)
    if get_treatment_by_natural_id(risk_id, treatment_id) is not None:
        raise DuplicateEntryError("Treatment", "treatmentId", treatment_id)

    treatment = Treatment(
        risk_id=risk_id,
        treatment_id=treatment_id,
        closure_approval=CLOSURE_PENDING,
        closure_approved_by="",
        number_of_extensions=0,
    )
    _apply_fields(treatment, data)
    db.session.add(treatment)
    commit_or_raise("Treatment", "treatmentId", treatment_id)
    logger.info("Treatment %s created for %s", treatment_id, risk_id,
                extra={"risk_id": risk_id, "treatment_id": treatment_id})
    return treatment


def update_treatment(risk_id: str, treatment_id: str, data: dict) -> Treatment:
    treatment = get_treatment(risk_id, treatment_id)

    locked = [f for f in _LIFECYCLE_FIELDS if f in data]
    if locked:
        raise ValidationError(
            f"Fields managed by the treatment lifecycle cannot be updated directly: {', '.join(locked)}",
            details={f: "use the extensions or closure-decision endpoints" for f in locked},
        )
    for key in ("riskId", "treatmentId"):
        if key in data and data[key] != getattr(treatment, "risk_id" if key == "riskId" else "treatment_id"):
            raise ValidationError(f"{key} cannot be changed", details={key: "immutable"})

    errors = validate_treatment(data, partial=True)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    _apply_fields(treatment, data)
    treatment.updated_at = _utcnow()
    commit_or_raise("Treatment", "treatmentId", treatment_id)
    return treatment


def delete_treatment(risk_id: str, treatment_id: str) -> None:
    treatment = get_treatment(risk_id, treatment_id)
    db.session.delete(treatment)
    commit_or_raise("Treatment", "treatmentId", treatment_id)
    logger.info("Treatment %s deleted", treatment_id,
                extra={"risk_id": risk_id, "treatment_id": treatment_id})
