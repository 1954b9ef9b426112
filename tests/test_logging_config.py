"""
Logging formatters, service log context and production config guards.
"""
import json
import logging

import pytest

from grc.config import ProductionConfig
from grc.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(**extra):
    record = logging.LogRecord("grc.test", logging.INFO, __file__, 10, "Risk %s added", ("RISK-010",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_json_carries_entity_ids(self):
        out = json.loads(JSONFormatter().format(_record(workshop_id="WS-2025-03", risk_id="RISK-010")))
        assert out["message"] == "Risk RISK-010 added"
        assert out["workshop_id"] == "WS-2025-03"
        assert out["risk_id"] == "RISK-010"
        assert "treatment_id" not in out

    def test_readable_appends_tags(self):
        line = ReadableFormatter().format(_record(risk_id="RISK-010", duration_ms=12.4))
        assert "risk_id=RISK-010" in line
        assert "12ms" in line


class TestServiceLogContext:
    def test_agenda_log_record_carries_entity_ids(self, client, make_risk, make_workshop, caplog):
        make_risk("RISK-001", "Draft")
        make_workshop("WS-LOG")
        with caplog.at_level(logging.INFO, logger="grc.services.workshop_agenda"):
            res = client.post(
                "/api/v1/workshops/WS-LOG/agenda",
                json={"riskId": "RISK-001", "topic": "newRisks"},
            )
        assert res.status_code == 200
        added = [r for r in caplog.records if r.name == "grc.services.workshop_agenda"]
        assert added
        assert added[0].workshop_id == "WS-LOG"
        assert added[0].risk_id == "RISK-001"


class TestProductionConfig:
    def test_requires_database_url(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            ProductionConfig()

    def test_requires_secret_key(self, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/grc")
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(RuntimeError, match="SECRET_KEY"):
            ProductionConfig()
