"""
Field-level validation for risk, treatment and workshop payloads.

Pure functions: each takes a request body (camelCase keys) and returns a list
of human-readable error strings; an empty list means valid. ``partial=True``
validates only the fields present (PUT semantics).

No cross-entity awareness lives here; cross-entity rules belong to the
workshop agenda engine and the treatment lifecycle service.
"""

from grc.models.risk import (
    CONSEQUENCE_RATINGS,
    LIKELIHOOD_RATINGS,
    RISK_ACTIONS,
    RISK_ID_PATTERN,
    RISK_PHASES,
    RISK_RATINGS,
)
from grc.models.treatment import CLOSURE_STATUSES
from grc.models.workshop import (
    AGENDA_TOPICS,
    SECURITY_STEERING_COMMITTEES,
    WORKSHOP_STATUSES,
)
from grc.services.risk_phase import normalize_phase
from grc.utils.helpers import parse_date_input

RISK_DATE_FIELDS = ("dateRiskRaised",)
RISK_TEXT_FIELDS = (
    "riskStatement",
    "threat",
    "vulnerability",
    "riskOwner",
    "raisedBy",
    "functionalUnit",
    "jiraTicket",
    "impactCIA",
)
TREATMENT_DATE_FIELDS = ("dateRiskTreatmentDue", "extendedDueDate", "completionDate")

_TOPIC_LABELS = {"extensions": "Extensions", "closure": "Closure", "newRisks": "New Risks"}


def _check_enum(data: dict, field: str, allowed, errors: list) -> None:
    value = data.get(field)
    if value is None or value == "":
        return
    if not isinstance(value, str):
        errors.append(f"Invalid {field}: must be a string")
    elif value not in allowed:
        options = ", ".join(allowed if isinstance(allowed, (list, tuple)) else sorted(allowed))
        errors.append(f'Invalid {field}: "{value}". Must be one of: {options}')


def _check_dates(data: dict, fields, errors: list) -> None:
    for field in fields:
        value = data.get(field)
        if value in (None, ""):
            continue
        try:
            parse_date_input(value)
        except ValueError:
            errors.append(f"Invalid date format for {field}: {value}")


def _check_strings(data: dict, fields, errors: list) -> None:
    for field in fields:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            errors.append(f"Invalid {field}: must be a string")


def _check_required(data: dict, fields, errors: list) -> None:
    missing = [f for f in fields if not isinstance(data.get(f), str) or not data.get(f).strip()]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")


# ═════════════════════════════════════════════════════════════════════════════
# RISK
# ═════════════════════════════════════════════════════════════════════════════

def normalize_information_asset(value) -> tuple[list[str], list[str]]:
    """Coerce ``informationAsset`` to a de-duplicated list of asset id strings.

    Accepts None, a comma-separated string, or a list of strings / ``{id}``
    objects. Returns ``(asset_ids, errors)``.
    """
    errors: list[str] = []
    if value is None:
        return [], errors
    if isinstance(value, str):
        ids = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, list):
        ids = []
        for item in value:
            if isinstance(item, str):
                if item.strip():
                    ids.append(item.strip())
            elif isinstance(item, dict) and item.get("id") not in (None, ""):
                ids.append(str(item["id"]))
            else:
                errors.append(f"Invalid information asset format: {item!r}")
    else:
        return [], [f"Invalid informationAsset format: expected string or array, got {type(value).__name__}"]

    seen = set()
    unique = [i for i in ids if not (i in seen or seen.add(i))]
    return unique, errors


def validate_risk(data: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    risk_id = data.get("riskId")
    if not partial or "riskId" in data:
        if not isinstance(risk_id, str) or not risk_id.strip():
            errors.append("Risk ID is required and must be a non-empty string")
        elif not RISK_ID_PATTERN.match(risk_id):
            errors.append(f"Invalid riskId format: {risk_id}. Expected RISK-###")

    phase = data.get("currentPhase")
    if phase not in (None, "") and normalize_phase(phase) is None:
        errors.append(
            f'Invalid currentPhase: "{phase}". Must be one of: {", ".join(RISK_PHASES)}'
        )
    _check_strings(data, RISK_TEXT_FIELDS, errors)
    _check_enum(data, "currentRiskRating", RISK_RATINGS, errors)
    _check_enum(data, "residualRiskRating", RISK_RATINGS, errors)
    _check_enum(data, "consequence", CONSEQUENCE_RATINGS, errors)
    _check_enum(data, "likelihood", LIKELIHOOD_RATINGS, errors)
    _check_enum(data, "riskAction", RISK_ACTIONS, errors)
    _check_dates(data, RISK_DATE_FIELDS, errors)

    if "informationAsset" in data:
        _, asset_errors = normalize_information_asset(data["informationAsset"])
        errors.extend(asset_errors)
    return errors


# ═════════════════════════════════════════════════════════════════════════════
# TREATMENT
# ═════════════════════════════════════════════════════════════════════════════

TREATMENT_REQUIRED_FIELDS = (
    "riskTreatment",
    "riskTreatmentOwner",
    "treatmentJiraTicket",
    "dateRiskTreatmentDue",
)


def validate_treatment(data: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial:
        _check_required(data, ("riskId",) + TREATMENT_REQUIRED_FIELDS, errors)
    else:
        for field in TREATMENT_REQUIRED_FIELDS:
            if field in data and (not isinstance(data[field], str) or not data[field].strip()):
                errors.append(f"{field} cannot be empty")

    tid = data.get("treatmentId")
    if tid is not None and (not isinstance(tid, str) or not tid.strip()):
        errors.append("treatmentId must be a non-empty string")

    _check_enum(data, "closureApproval", CLOSURE_STATUSES, errors)
    _check_dates(data, TREATMENT_DATE_FIELDS, errors)
    return errors


# ═════════════════════════════════════════════════════════════════════════════
# WORKSHOP
# ═════════════════════════════════════════════════════════════════════════════

def _validate_minutes_item(item, section: str, errors: list) -> None:
    if not isinstance(item, dict):
        errors.append(f"{section}: Each item must be an object")
        return
    if not isinstance(item.get("riskId"), str) or not item.get("riskId"):
        errors.append(f"{section}: Each item must have a valid riskId string")
    for field in ("actionsTaken", "toDo", "outcome"):
        if item.get(field) is not None and not isinstance(item[field], str):
            errors.append(f"{section}: {field} must be a string")


def validate_meeting_minutes(data: dict) -> list[str]:
    errors: list[str] = []
    for topic in AGENDA_TOPICS:
        if topic not in data or data[topic] is None:
            continue
        label = _TOPIC_LABELS[topic]
        items = data[topic]
        if not isinstance(items, list):
            errors.append(f"{label} must be an array")
            continue
        for idx, item in enumerate(items, 1):
            _validate_minutes_item(item, f"{label} item {idx}", errors)
    return errors


def validate_workshop(data: dict, *, partial: bool = False) -> list[str]:
    errors: list[str] = []
    if not partial:
        _check_required(data, ("id", "date", "facilitator"), errors)
        if data.get("status") not in WORKSHOP_STATUSES:
            errors.append(
                f'Invalid status: "{data.get("status")}". Must be one of: {", ".join(WORKSHOP_STATUSES)}'
            )
    else:
        if "id" in data:
            errors.append("Workshop id cannot be changed")
        if "status" in data and data["status"] not in WORKSHOP_STATUSES:
            errors.append(
                f'Invalid status: "{data["status"]}". Must be one of: {", ".join(WORKSHOP_STATUSES)}'
            )
        if "date" in data and not data["date"]:
            errors.append("date cannot be empty")

    _check_enum(data, "securitySteeringCommittee", SECURITY_STEERING_COMMITTEES, errors)
    _check_strings(data, ("facilitator", "notes"), errors)
    _check_dates(data, ("date",), errors)

    participants = data.get("participants")
    if participants is not None and (
        not isinstance(participants, list) or not all(isinstance(p, str) for p in participants)
    ):
        errors.append("participants must be an array of strings")

    errors.extend(validate_meeting_minutes(data))
    return errors
