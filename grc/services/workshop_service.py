"""Workshop service layer: CRUD plus meeting-minutes editing.

Agenda items enter only through ``workshop_agenda.add_risk_to_agenda``.
Creating a workshop ignores agenda arrays; updating one may only edit the
minutes fields (actionsTaken / toDo / outcome) of items already on the
agenda, matched by riskId within each topic.
"""
import logging

from sqlalchemy import select

from grc.core.exceptions import DuplicateEntryError, NotFoundError, ValidationError
from grc.models import _utcnow, db
from grc.models.workshop import (
    AGENDA_TOPICS,
    MINUTES_FIELDS,
    Workshop,
    get_workshop_by_ref,
)
from grc.services.validation import validate_workshop
from grc.utils.helpers import commit_or_raise, parse_date

logger = logging.getLogger(__name__)

_TEXT_FIELDS = {
    "facilitator": "facilitator",
    "status": "status",
    "securitySteeringCommittee": "security_steering_committee",
    "notes": "notes",
}


def _apply_fields(ws: Workshop, data: dict) -> None:
    for key, attr in _TEXT_FIELDS.items():
        if key in data:
            setattr(ws, attr, data[key])
    if "date" in data:
        ws.date = parse_date(data["date"])
    if "participants" in data:
        ws.participants = list(data["participants"] or [])


def get_workshop(workshop_ref) -> Workshop:
    ws = get_workshop_by_ref(workshop_ref)
    if ws is None:
        raise NotFoundError("Workshop", workshop_ref, message="Workshop not found")
    return ws


def list_workshops(status: str | None = None) -> list[Workshop]:
    stmt = select(Workshop)
    if status:
        stmt = stmt.where(Workshop.status == status)
    return db.session.execute(stmt.order_by(Workshop.date, Workshop.workshop_id)).scalars().all()


def create_workshop(data: dict) -> Workshop:
    errors = validate_workshop(data)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    workshop_id = data["id"].strip()
    if get_workshop_by_ref(workshop_id) is not None:
        raise DuplicateEntryError("Workshop", "id", workshop_id)

    ws = Workshop(workshop_id=workshop_id, participants=[])
    _apply_fields(ws, data)
    db.session.add(ws)
    commit_or_raise("Workshop", "id", workshop_id)
    logger.info("Workshop %s created (%s, %s)", workshop_id, ws.status, ws.date.isoformat(),
                extra={"workshop_id": workshop_id})
    return ws


def _match_minutes(ws: Workshop, data: dict) -> list:
    """Pair incoming minutes with existing agenda items; reject unknown risks."""
    pairs = []
    for topic in AGENDA_TOPICS:
        if data.get(topic) is None:
            continue
        by_risk = {item.risk_id: item for item in ws.topic_items(topic)}
        unknown = [i["riskId"] for i in data[topic] if i["riskId"] not in by_risk]
        if unknown:
            raise ValidationError(
                f"Risks not on the {topic} agenda: {', '.join(unknown)}. "
                "Use the agenda endpoint to add risks.",
                details={topic: unknown},
            )
        pairs.extend((by_risk[i["riskId"]], i) for i in data[topic])
    return pairs


def update_workshop(workshop_ref, data: dict) -> Workshop:
    ws = get_workshop(workshop_ref)
    errors = validate_workshop(data, partial=True)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    minutes = _match_minutes(ws, data)
    _apply_fields(ws, data)
    for item, incoming in minutes:
        for key, attr in MINUTES_FIELDS.items():
            if key in incoming:
                setattr(item, attr, incoming[key] or "")
    ws.updated_at = _utcnow()
    commit_or_raise("Workshop", "id", ws.workshop_id)
    return ws


def delete_workshop(workshop_ref) -> str:
    ws = get_workshop(workshop_ref)
    workshop_id = ws.workshop_id
    db.session.delete(ws)
    commit_or_raise("Workshop", "id", workshop_id)
    logger.info("Workshop %s deleted", workshop_id, extra={"workshop_id": workshop_id})
    return workshop_id
