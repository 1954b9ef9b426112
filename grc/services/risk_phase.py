"""
Risk Phase Model.

Classifies a risk's ``currentPhase`` against the two kinds of workshop agenda
topic:

    Treatment / Monitoring        → extensions, closure
    every other phase (incl. Closed, unknown, missing) → newRisks

The two predicates are exact complements, so every phase is eligible for
exactly one category. Comparison is case-insensitive because legacy records
carry mixed-case phases ("treatment", "TREATMENT").
"""

from grc.models.risk import RISK_PHASES
from grc.models.workshop import AGENDA_TOPICS, TOPIC_NEW_RISKS, TREATMENT_TOPICS

_EXTENSION_OR_CLOSURE_PHASES = frozenset({"treatment", "monitoring"})
_CANONICAL = {p.lower(): p for p in RISK_PHASES}


def normalize_phase(value: str | None) -> str | None:
    """Canonical spelling of a known phase, or None if unknown."""
    if not isinstance(value, str):
        return None
    return _CANONICAL.get(value.strip().lower())


def _key(phase) -> str:
    return phase.strip().lower() if isinstance(phase, str) else ""


def is_extension_or_closure_eligible(phase: str | None) -> bool:
    return _key(phase) in _EXTENSION_OR_CLOSURE_PHASES


def is_new_risk_eligible(phase: str | None) -> bool:
    # TODO: exclude Closed once product confirms closed risks never return to a workshop
    return not is_extension_or_closure_eligible(phase)


def is_topic_eligible(phase: str | None, topic: str) -> bool:
    """Whether a risk in ``phase`` may be placed under agenda ``topic``."""
    if topic in TREATMENT_TOPICS:
        return is_extension_or_closure_eligible(phase)
    if topic == TOPIC_NEW_RISKS:
        return is_new_risk_eligible(phase)
    raise ValueError(f"Unknown agenda topic: {topic}")


def eligible_topics(phase: str | None) -> list[str]:
    return [t for t in AGENDA_TOPICS if is_topic_eligible(phase, t)]
