"""
GRC Risk Workflow Service
Risk register model.

Models:
    - Risk: a tracked hazard moving through the lifecycle phases

Natural key is ``risk_id`` (RISK-###); the integer ``id`` is store-internal.
"""

import re

from sqlalchemy import select

from grc.models import _iso, _utcnow, db


# ── Constants ────────────────────────────────────────────────────────────────

RISK_PHASES = (
    "Draft",
    "Identification",
    "Analysis",
    "Evaluation",
    "Treatment",
    "Monitoring",
    "Closed",
)
DEFAULT_RISK_PHASE = "Identification"

RISK_RATINGS = {"Extreme", "High", "Moderate", "Low"}
CONSEQUENCE_RATINGS = {"Critical", "Major", "Moderate", "Minor", "Insignificant"}
LIKELIHOOD_RATINGS = {"Almost Certain", "Likely", "Possible", "Unlikely", "Rare"}
RISK_ACTIONS = {"Avoid", "Transfer", "Accept", "Mitigate"}

RISK_ID_PATTERN = re.compile(r"^RISK-(\d{3,})$")


def risk_number(risk_id: str) -> str | None:
    """Numeric part of a risk id as written ("RISK-010" → "010")."""
    m = RISK_ID_PATTERN.match(risk_id or "")
    return m.group(1) if m else None


class Risk(db.Model):
    """A risk in the register. Only ``current_phase`` feeds the rule engine."""

    __tablename__ = "risks"

    id = db.Column(db.Integer, primary_key=True)
    risk_id = db.Column(db.String(20), unique=True, nullable=False, index=True,
                        comment="Natural key: RISK-###")
    current_phase = db.Column(db.String(30), default=DEFAULT_RISK_PHASE, index=True)

    risk_statement = db.Column(db.Text, default="")
    threat = db.Column(db.Text, default="")
    vulnerability = db.Column(db.Text, default="")
    risk_owner = db.Column(db.String(150), default="")
    raised_by = db.Column(db.String(150), default="")
    functional_unit = db.Column(db.String(150), default="")
    jira_ticket = db.Column(db.String(50), default="")
    date_risk_raised = db.Column(db.Date, nullable=True)
    information_asset = db.Column(db.JSON, default=list, comment="List of asset id strings")
    impact_cia = db.Column(db.String(100), default="")

    consequence = db.Column(db.String(30), default="")
    likelihood = db.Column(db.String(30), default="")
    current_risk_rating = db.Column(db.String(20), default="")
    risk_action = db.Column(db.String(20), default="")
    residual_risk_rating = db.Column(db.String(20), default="")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "riskId": self.risk_id,
            "currentPhase": self.current_phase,
            "riskStatement": self.risk_statement,
            "threat": self.threat,
            "vulnerability": self.vulnerability,
            "riskOwner": self.risk_owner,
            "raisedBy": self.raised_by,
            "functionalUnit": self.functional_unit,
            "jiraTicket": self.jira_ticket,
            "dateRiskRaised": _iso(self.date_risk_raised),
            "informationAsset": list(self.information_asset or []),
            "impactCIA": self.impact_cia,
            "consequence": self.consequence,
            "likelihood": self.likelihood,
            "currentRiskRating": self.current_risk_rating,
            "riskAction": self.risk_action,
            "residualRiskRating": self.residual_risk_rating,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Risk {self.risk_id} phase={self.current_phase}>"


def get_risk_by_natural_id(risk_id: str) -> Risk | None:
    return db.session.execute(
        select(Risk).where(Risk.risk_id == risk_id)
    ).scalar_one_or_none()


def next_risk_id(max_attempts: int = 10) -> str:
    """
    Next free RISK-### id: highest numeric suffix + 1, zero-padded to 3.

    Walks forward past ids that already exist (e.g. hand-entered gaps),
    giving up after ``max_attempts`` probes.
    """
    highest = 0
    for (rid,) in db.session.execute(select(Risk.risk_id)).all():
        num = risk_number(rid)
        if num is not None:
            highest = max(highest, int(num))

    candidate = highest + 1
    for _ in range(max_attempts):
        if get_risk_by_natural_id(f"RISK-{candidate:03d}") is None:
            break
        candidate += 1
    return f"RISK-{candidate:03d}"
