"""
GRC Risk Workflow Service
Workshop models.

Models:
    - Workshop: scheduled risk workshop (security steering committee meeting)
    - WorkshopAgendaItem: one risk under one agenda topic of one workshop

A workshop agenda has three topic sections:
    extensions  : treatment due-date extensions to discuss
    closure     : treatments proposed for closure
    newRisks    : newly raised risks

(workshop, topic, risk_id) is unique: a risk appears at most once per topic.
"""

from sqlalchemy import select

from grc.models import _iso, _utcnow, db


# ── Constants ────────────────────────────────────────────────────────────────

WORKSHOP_STATUSES = (
    "Pending Agenda",
    "Planned",
    "Scheduled",
    "Finalising Meeting Minutes",
    "Completed",
)
AGENDA_SELECTABLE_STATUSES = ("Planned", "Scheduled", "Pending Agenda")

SECURITY_STEERING_COMMITTEES = (
    "Core Systems Engineering",
    "Software Engineering",
    "IP Engineering",
)

TOPIC_EXTENSIONS = "extensions"
TOPIC_CLOSURE = "closure"
TOPIC_NEW_RISKS = "newRisks"
AGENDA_TOPICS = (TOPIC_EXTENSIONS, TOPIC_CLOSURE, TOPIC_NEW_RISKS)
TREATMENT_TOPICS = frozenset({TOPIC_EXTENSIONS, TOPIC_CLOSURE})

MINUTES_FIELDS = {"actionsTaken": "actions_taken", "toDo": "to_do", "outcome": "outcome"}


class Workshop(db.Model):
    """
    A risk workshop.

    ``workshop_id`` is the natural key exposed as ``id`` in JSON; the integer
    primary key is exposed as ``_id`` and accepted as a fallback reference.
    """

    __tablename__ = "workshops"

    id = db.Column(db.Integer, primary_key=True)
    workshop_id = db.Column(db.String(30), unique=True, nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(40), default="Pending Agenda", nullable=False, index=True)
    facilitator = db.Column(db.String(150), default="")
    security_steering_committee = db.Column(db.String(60), nullable=True)
    participants = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text, default="")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    agenda_items = db.relationship(
        "WorkshopAgendaItem",
        back_populates="workshop",
        order_by="WorkshopAgendaItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def topic_items(self, topic: str) -> list:
        return [item for item in self.agenda_items if item.topic == topic]

    def to_dict(self):
        d = {
            "_id": self.id,
            "id": self.workshop_id,
            "date": _iso(self.date),
            "status": self.status,
            "facilitator": self.facilitator,
            "securitySteeringCommittee": self.security_steering_committee,
            "participants": list(self.participants or []),
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        for topic in AGENDA_TOPICS:
            d[topic] = [item.to_dict() for item in self.topic_items(topic)]
        return d

    def __repr__(self):
        return f"<Workshop {self.workshop_id} status={self.status} date={self.date}>"


class WorkshopAgendaItem(db.Model):
    """An agenda entry linking a risk (and optionally treatments) to a topic."""

    __tablename__ = "workshop_agenda_items"
    __table_args__ = (
        db.UniqueConstraint("workshop_pk", "topic", "risk_id", name="uq_agenda_topic_risk"),
    )

    id = db.Column(db.Integer, primary_key=True)
    workshop_pk = db.Column(
        db.Integer, db.ForeignKey("workshops.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    topic = db.Column(db.String(20), nullable=False)
    risk_id = db.Column(db.String(20), nullable=False)
    selected_treatments = db.Column(db.JSON, default=list)
    actions_taken = db.Column(db.Text, default="")
    to_do = db.Column(db.Text, default="")
    outcome = db.Column(db.Text, default="")
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    workshop = db.relationship("Workshop", back_populates="agenda_items")

    def to_dict(self):
        return {
            "riskId": self.risk_id,
            "selectedTreatments": list(self.selected_treatments or []),
            "actionsTaken": self.actions_taken or "",
            "toDo": self.to_do or "",
            "outcome": self.outcome or "",
        }


def get_workshop_by_ref(ref) -> Workshop | None:
    """Look up by natural id, falling back to the integer key for digit refs."""
    ref = str(ref)
    ws = db.session.execute(
        select(Workshop).where(Workshop.workshop_id == ref)
    ).scalar_one_or_none()
    if ws is None and ref.isdigit():
        ws = db.session.get(Workshop, int(ref))
    return ws
