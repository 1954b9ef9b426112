"""Risk register service layer.

Transaction policy: every mutating function validates first, then commits
through ``commit_or_raise`` so a failure leaves no partial write.

Operations:
- Risk CRUD keyed by riskId (riskId is immutable after create)
- Next free RISK-### id
- Agenda-topic eligibility view for a risk
"""
import logging

from sqlalchemy import func, select

from grc.core.exceptions import DuplicateEntryError, NotFoundError, ValidationError
from grc.models import _utcnow, db
from grc.models.risk import DEFAULT_RISK_PHASE, Risk, get_risk_by_natural_id, next_risk_id
from grc.services.risk_phase import eligible_topics, normalize_phase
from grc.services.validation import normalize_information_asset, validate_risk
from grc.utils.helpers import commit_or_raise, parse_date

logger = logging.getLogger(__name__)

# JSON key → model attribute for plain text fields
_TEXT_FIELDS = {
    "riskStatement": "risk_statement",
    "threat": "threat",
    "vulnerability": "vulnerability",
    "riskOwner": "risk_owner",
    "raisedBy": "raised_by",
    "functionalUnit": "functional_unit",
    "jiraTicket": "jira_ticket",
    "impactCIA": "impact_cia",
    "consequence": "consequence",
    "likelihood": "likelihood",
    "currentRiskRating": "current_risk_rating",
    "riskAction": "risk_action",
    "residualRiskRating": "residual_risk_rating",
}


def _apply_fields(risk: Risk, data: dict) -> None:
    for key, attr in _TEXT_FIELDS.items():
        if key in data:
            setattr(risk, attr, data[key] or "")
    if "currentPhase" in data:
        risk.current_phase = normalize_phase(data["currentPhase"]) or DEFAULT_RISK_PHASE
    if "dateRiskRaised" in data:
        risk.date_risk_raised = parse_date(data["dateRiskRaised"])
    if "informationAsset" in data:
        risk.information_asset, _ = normalize_information_asset(data["informationAsset"])


def get_risk(risk_id: str) -> Risk:
    risk = get_risk_by_natural_id(risk_id)
    if risk is None:
        raise NotFoundError("Risk", risk_id, message="Risk not found")
    return risk


def list_risks(phase: str | None = None) -> list[Risk]:
    stmt = select(Risk)
    if phase:
        stmt = stmt.where(func.lower(Risk.current_phase) == phase.strip().lower())
    return db.session.execute(stmt.order_by(Risk.risk_id)).scalars().all()


def create_risk(data: dict) -> Risk:
    errors = validate_risk(data)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    risk_id = data["riskId"].strip()
    if get_risk_by_natural_id(risk_id) is not None:
        raise DuplicateEntryError("Risk", "riskId", risk_id)

    risk = Risk(risk_id=risk_id, current_phase=DEFAULT_RISK_PHASE, information_asset=[])
    _apply_fields(risk, data)
    db.session.add(risk)
    commit_or_raise("Risk", "riskId", risk_id)
    logger.info("Risk %s created (phase=%s)", risk_id, risk.current_phase, extra={"risk_id": risk_id})
    return risk


def update_risk(risk_id: str, data: dict) -> Risk:
    risk = get_risk(risk_id)
    if "riskId" in data and data["riskId"] != risk.risk_id:
        raise ValidationError("riskId cannot be changed", details={"riskId": "immutable"})

    errors = validate_risk({k: v for k, v in data.items() if k != "riskId"}, partial=True)
    if errors:
        raise ValidationError("; ".join(errors), details={"errors": errors})

    previous_phase = risk.current_phase
    _apply_fields(risk, data)
    risk.updated_at = _utcnow()
    commit_or_raise("Risk", "riskId", risk_id)
    if risk.current_phase != previous_phase:
        logger.info("Risk %s phase %s → %s", risk_id, previous_phase, risk.current_phase,
                    extra={"risk_id": risk_id})
    return risk


def delete_risk(risk_id: str) -> None:
    risk = get_risk(risk_id)
    db.session.delete(risk)
    commit_or_raise("Risk", "riskId", risk_id)
    logger.info("Risk %s deleted", risk_id, extra={"risk_id": risk_id})


def generate_next_risk_id() -> dict:
    rid = next_risk_id()
    return {"nextRiskId": rid, "nextNumericId": int(rid.split("-", 1)[1])}


def agenda_topics_for(risk_id: str) -> dict:
    """Which workshop agenda topics this risk's phase allows."""
    risk = get_risk(risk_id)
    return {
        "riskId": risk.risk_id,
        "currentPhase": risk.current_phase,
        "eligibleTopics": eligible_topics(risk.current_phase),
    }
