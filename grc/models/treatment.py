"""
GRC Risk Workflow Service
Treatment models.

Models:
    - Treatment: remediation action attached to one risk (by riskId string)
    - TreatmentExtension: append-only due-date extension history

Chain: Risk (riskId) → Treatment → TreatmentExtension[]

``number_of_extensions`` is denormalised and must always equal
``len(extensions)``; only the lifecycle service appends extensions.
"""

import re

from sqlalchemy import select

from grc.models import _iso, _utcnow, db


# ── Constants ────────────────────────────────────────────────────────────────

CLOSURE_PENDING = "Pending"
CLOSURE_APPROVED = "Approved"
CLOSURE_REJECTED = "Rejected"
CLOSURE_STATUSES = {CLOSURE_PENDING, CLOSURE_APPROVED, CLOSURE_REJECTED}

EXTENSION_PENDING_APPROVAL = "Pending Approval"
EXTENSION_APPROVED = "Approved"
EXTENSION_REJECTED = "Rejected"
EXTENSION_STATUSES = {EXTENSION_PENDING_APPROVAL, EXTENSION_APPROVED, EXTENSION_REJECTED}

TREATMENT_ID_PATTERN = re.compile(r"^TREAT-(\d+)-(\d+)$")


class Treatment(db.Model):
    """
    A treatment for a risk, gated by closure approval.

    ``risk_id`` is a reference to ``Risk.risk_id``, not an ownership FK:
    treatments are looked up by the (risk_id, treatment_id) pair.
    """

    __tablename__ = "treatments"
    __table_args__ = (
        db.UniqueConstraint("risk_id", "treatment_id", name="uq_treatment_risk_treatment"),
    )

    id = db.Column(db.Integer, primary_key=True)
    treatment_id = db.Column(db.String(30), nullable=False, comment="TREAT-<risknum>-<seq>")
    risk_id = db.Column(db.String(20), nullable=False, index=True)

    treatment_jira_ticket = db.Column(db.String(50), default="")
    risk_treatment = db.Column(db.Text, default="")
    risk_treatment_owner = db.Column(db.String(150), default="")
    date_risk_treatment_due = db.Column(db.Date, nullable=True)
    extended_due_date = db.Column(db.Date, nullable=True)
    number_of_extensions = db.Column(db.Integer, default=0, nullable=False)
    completion_date = db.Column(db.Date, nullable=True)

    closure_approval = db.Column(db.String(20), default=CLOSURE_PENDING, nullable=False, index=True)
    closure_approved_by = db.Column(db.String(150), default="")
    date_closure_approved = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, default="")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    extensions = db.relationship(
        "TreatmentExtension",
        back_populates="treatment",
        order_by="TreatmentExtension.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "treatmentId": self.treatment_id,
            "riskId": self.risk_id,
            "treatmentJiraTicket": self.treatment_jira_ticket,
            "riskTreatment": self.risk_treatment,
            "riskTreatmentOwner": self.risk_treatment_owner,
            "dateRiskTreatmentDue": _iso(self.date_risk_treatment_due),
            "extendedDueDate": _iso(self.extended_due_date),
            "numberOfExtensions": self.number_of_extensions,
            "extensions": [e.to_dict() for e in self.extensions],
            "completionDate": _iso(self.completion_date),
            "closureApproval": self.closure_approval,
            "closureApprovedBy": self.closure_approved_by,
            "dateClosureApproved": _iso(self.date_closure_approved),
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Treatment {self.treatment_id} risk={self.risk_id} closure={self.closure_approval}>"


class TreatmentExtension(db.Model):
    """One due-date extension request; ``position`` preserves append order."""

    __tablename__ = "treatment_extensions"

    id = db.Column(db.Integer, primary_key=True)
    treatment_pk = db.Column(
        db.Integer, db.ForeignKey("treatments.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    extended_due_date = db.Column(db.Date, nullable=False)
    justification = db.Column(db.Text, nullable=False)
    approver = db.Column(db.String(150), default=EXTENSION_PENDING_APPROVAL)
    status = db.Column(db.String(20), default=EXTENSION_PENDING_APPROVAL)
    date_approved = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    treatment = db.relationship("Treatment", back_populates="extensions")

    def to_dict(self):
        return {
            "extendedDueDate": _iso(self.extended_due_date),
            "justification": self.justification,
            "approver": self.approver,
            "status": self.status,
            "dateApproved": _iso(self.date_approved),
            "createdAt": _iso(self.created_at),
        }


def get_treatment_by_natural_id(risk_id: str, treatment_id: str) -> Treatment | None:
    return db.session.execute(
        select(Treatment).where(
            Treatment.risk_id == risk_id,
            Treatment.treatment_id == treatment_id,
        )
    ).scalar_one_or_none()
