"""
Shared pytest fixtures for the GRC risk workflow test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - risk / treatment / workshop factories for arbitrary starting states
"""

from datetime import date, timedelta

import pytest

from grc import create_app
from grc.models import db as _db
from grc.models.risk import Risk
from grc.models.treatment import CLOSURE_PENDING, Treatment
from grc.models.workshop import Workshop


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── ORM factories (bypass the API to reach arbitrary states) ─────────────


@pytest.fixture()
def make_risk():
    def _make(risk_id="RISK-001", phase="Treatment", **fields):
        risk = Risk(risk_id=risk_id, current_phase=phase, information_asset=[], **fields)
        _db.session.add(risk)
        _db.session.flush()
        return risk
    return _make


@pytest.fixture()
def make_treatment():
    def _make(risk_id="RISK-001", treatment_id="TREAT-001-01", closure=CLOSURE_PENDING, **fields):
        fields.setdefault("risk_treatment", "Patch the exposed service")
        fields.setdefault("risk_treatment_owner", "J. Smith")
        fields.setdefault("treatment_jira_ticket", "SEC-100")
        fields.setdefault("date_risk_treatment_due", date.today() + timedelta(days=30))
        treatment = Treatment(
            risk_id=risk_id,
            treatment_id=treatment_id,
            closure_approval=closure,
            number_of_extensions=0,
            **fields,
        )
        _db.session.add(treatment)
        _db.session.flush()
        return treatment
    return _make


@pytest.fixture()
def make_workshop():
    def _make(workshop_id="WS-2025-03", status="Scheduled", days_ahead=1, **fields):
        fields.setdefault("facilitator", "A. Chair")
        ws = Workshop(
            workshop_id=workshop_id,
            status=status,
            date=date.today() + timedelta(days=days_ahead),
            participants=[],
            **fields,
        )
        _db.session.add(ws)
        _db.session.flush()
        return ws
    return _make
