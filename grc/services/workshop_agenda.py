"""
Workshop Eligibility Engine: add a risk to a workshop agenda topic.

Cross-validates workshop, risk and treatment state, then appends one agenda
item. Checks run in a fixed order; the first failure wins and nothing is
written:

    1. workshop exists (natural id, then store id)      → NotFoundError
    2. workshop status is Planned / Scheduled / Pending Agenda → InvalidStateError
    3. workshop date is today or later                 → InvalidStateError
    4. risk exists                                     → NotFoundError
    5. risk phase fits the topic                       → PhaseMismatchError
    6. risk not already under this topic               → DuplicateEntryError
    7. extensions/closure: selected treatments given, exist and are Pending
                                                       → ValidationError / NotFoundError / InvalidStateError
    8-9. append item + touch updated_at in one conditional write
                                                       → ConflictError if the workshop vanished

Steps 6 and 9 are separate statements; the unique constraint on
(workshop_pk, topic, risk_id) turns a concurrent duplicate into
DuplicateEntryError at commit time.

Usage:
    from grc.services.workshop_agenda import add_risk_to_agenda

    added = add_risk_to_agenda("WS-2025-03", "RISK-010", "closure", ["TREAT-010-01"])
"""

import logging
from datetime import date

from sqlalchemy import update

from grc.core.exceptions import (
    ConflictError,
    DuplicateEntryError,
    InvalidStateError,
    NotFoundError,
    PhaseMismatchError,
    ValidationError,
)
from grc.models import _utcnow, db
from grc.models.risk import get_risk_by_natural_id
from grc.models.treatment import get_treatment_by_natural_id
from grc.models.workshop import (
    AGENDA_SELECTABLE_STATUSES,
    AGENDA_TOPICS,
    TREATMENT_TOPICS,
    Workshop,
    WorkshopAgendaItem,
    get_workshop_by_ref,
)
from grc.services.risk_phase import is_topic_eligible
from grc.services.treatment_lifecycle import is_selectable_for_workshop
from grc.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


def resolve_workshop(workshop_ref) -> Workshop:
    ws = get_workshop_by_ref(workshop_ref)
    if ws is None:
        raise NotFoundError("Workshop", workshop_ref, message="Workshop not found")
    return ws


def check_workshop_open(workshop: Workshop, today: date | None = None) -> None:
    """Raise InvalidStateError unless the workshop agenda may still change."""
    if workshop.status not in AGENDA_SELECTABLE_STATUSES:
        raise InvalidStateError(
            f'Cannot add risks to workshop with status "{workshop.status}". '
            "Workshop must be Planned, Scheduled, or Pending Agenda.",
            entity=workshop.workshop_id,
            state=workshop.status,
        )
    today = today or date.today()
    if workshop.date is None or workshop.date < today:
        when = workshop.date.isoformat() if workshop.date else "an unknown date"
        raise InvalidStateError(
            f"Cannot add risks to workshop scheduled for {when}. "
            "Only workshops with future dates can be modified.",
            entity=workshop.workshop_id,
            state=when,
        )


def _validate_request(risk_id, topic, selected_treatments) -> None:
    if not risk_id or not topic:
        raise ValidationError(
            "Missing required fields: riskId and topic are required",
            details={k: "required" for k, v in (("riskId", risk_id), ("topic", topic)) if not v},
        )
    if not isinstance(risk_id, str):
        raise ValidationError("riskId must be a string", details={"riskId": "must be a string"})
    if topic not in AGENDA_TOPICS:
        raise ValidationError(
            f"Invalid topic. Must be one of: {', '.join(AGENDA_TOPICS)}",
            details={"topic": topic},
        )
    if selected_treatments is not None and (
        not isinstance(selected_treatments, list)
        or not all(isinstance(t, str) and t for t in selected_treatments)
    ):
        raise ValidationError(
            "selectedTreatments must be an array of treatment id strings",
            details={"selectedTreatments": "must be an array of strings"},
        )


def _check_treatments(risk_id: str, topic: str, selected_treatments) -> None:
    if not selected_treatments:
        raise ValidationError(
            "Selected treatments are required for extensions and closure topics",
            details={"selectedTreatments": "required"},
        )
    for treatment_id in selected_treatments:
        treatment = get_treatment_by_natural_id(risk_id, treatment_id)
        if treatment is None:
            raise NotFoundError(
                "Treatment", treatment_id,
                message=f"Treatment {treatment_id} not found for risk {risk_id}",
            )
        if not is_selectable_for_workshop(treatment):
            raise InvalidStateError(
                f"Treatment {treatment_id} does not have pending closure approval "
                f'(closureApproval="{treatment.closure_approval}"). Only treatments with '
                f'"Pending" status can be added to the {topic} agenda.',
                entity=treatment_id,
                state=treatment.closure_approval,
            )


def add_risk_to_agenda(
    workshop_ref,
    risk_id: str,
    topic: str,
    selected_treatments: list[str] | None = None,
    *,
    today: date | None = None,
) -> dict:
    """
    Append ``risk_id`` to the ``topic`` section of a workshop agenda.

    Args:
        workshop_ref: workshop natural id, or its store id as a digit string.
        risk_id: natural risk key (RISK-###).
        topic: "extensions", "closure" or "newRisks".
        selected_treatments: treatment ids; required for extensions/closure.
        today: reference date for the workshop-date window (local date).

    Returns:
        {"workshopId", "riskId", "topic", "addedAt"}
    """
    _validate_request(risk_id, topic, selected_treatments)

    workshop = resolve_workshop(workshop_ref)
    check_workshop_open(workshop, today)

    risk = get_risk_by_natural_id(risk_id)
    if risk is None:
        raise NotFoundError("Risk", risk_id, message="Risk not found")

    if not is_topic_eligible(risk.current_phase, topic):
        if topic in TREATMENT_TOPICS:
            msg = (f'Risks in "{risk.current_phase}" phase cannot be added to {topic}. '
                   "Only Treatment and Monitoring phase risks are allowed.")
        else:
            msg = f'Risks in "{risk.current_phase}" phase cannot be added as new risks.'
        logger.debug("Agenda add rejected: %s phase=%s topic=%s", risk_id, risk.current_phase, topic)
        raise PhaseMismatchError(risk_id, risk.current_phase, topic, message=msg)

    existing = workshop.topic_items(topic)
    if any(item.risk_id == risk_id for item in existing):
        raise DuplicateEntryError(
            "Workshop agenda", "riskId", risk_id,
            message=f"Risk {risk_id} is already in the {topic} section of this workshop.",
        )

    if topic in TREATMENT_TOPICS:
        _check_treatments(risk_id, topic, selected_treatments)

    ws_pk, ws_key = workshop.id, workshop.workshop_id
    position = max((item.position for item in workshop.agenda_items), default=-1) + 1
    now = _utcnow()
    result = db.session.execute(
        update(Workshop)
        .where(Workshop.id == ws_pk)
        .values(updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.session.rollback()
        raise ConflictError("Workshop", ws_key)

    db.session.add(WorkshopAgendaItem(
        workshop_pk=ws_pk,
        topic=topic,
        risk_id=risk_id,
        selected_treatments=list(selected_treatments or []),
        actions_taken="",
        to_do="",
        outcome="",
        position=position,
        created_at=now,
    ))
    try:
        commit_or_raise("Workshop agenda", "riskId", risk_id)
    except DuplicateEntryError:
        raise DuplicateEntryError(
            "Workshop agenda", "riskId", risk_id,
            message=f"Risk {risk_id} is already in the {topic} section of this workshop.",
        )

    logger.info(
        "Risk %s added to %s section of workshop %s",
        risk_id, topic, ws_key,
        extra={"workshop_id": ws_key, "risk_id": risk_id},
    )
    return {
        "workshopId": ws_key,
        "riskId": risk_id,
        "topic": topic,
        "addedAt": now.isoformat(),
    }
