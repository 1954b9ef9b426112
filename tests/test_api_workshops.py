"""
Workshop API: CRUD, meeting minutes, and POST /workshops/<ref>/agenda.

Checks the response envelope ({success, message, data} / {success: false,
error, code}) and the status code each engine failure maps to.
"""
from datetime import date, timedelta

import pytest

BASE = "/api/v1/workshops"


def _tomorrow():
    return (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture()
def scenario(make_risk, make_treatment, make_workshop):
    make_risk("RISK-010", "Treatment")
    make_treatment("RISK-010", "TREAT-010-01")
    make_workshop("WS-2025-03", "Scheduled", days_ahead=1)


# ═════════════════════════════════════════════════════════════════════════════
# Agenda endpoint
# ═════════════════════════════════════════════════════════════════════════════


class TestAgendaEndpoint:
    def test_add_closure_item(self, client, scenario):
        res = client.post(f"{BASE}/WS-2025-03/agenda", json={
            "riskId": "RISK-010",
            "topic": "closure",
            "selectedTreatments": ["TREAT-010-01"],
        })
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["message"] == "Risk RISK-010 successfully added to closure section of workshop WS-2025-03"
        assert body["data"]["workshopId"] == "WS-2025-03"
        assert body["data"]["topic"] == "closure"

        ws = client.get(f"{BASE}/WS-2025-03").get_json()["data"]
        assert [i["riskId"] for i in ws["closure"]] == ["RISK-010"]

    def test_phase_mismatch_is_400(self, client, scenario):
        res = client.post(f"{BASE}/WS-2025-03/agenda", json={"riskId": "RISK-010", "topic": "newRisks"})
        assert res.status_code == 400
        body = res.get_json()
        assert body["success"] is False
        assert body["code"] == "ERR_PHASE_MISMATCH"
        assert "Treatment" in body["error"]

    def test_duplicate_is_400(self, client, scenario):
        payload = {"riskId": "RISK-010", "topic": "closure", "selectedTreatments": ["TREAT-010-01"]}
        assert client.post(f"{BASE}/WS-2025-03/agenda", json=payload).status_code == 200
        res = client.post(f"{BASE}/WS-2025-03/agenda", json=payload)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_DUPLICATE_ENTRY"

    def test_missing_fields_is_400(self, client, scenario):
        res = client.post(f"{BASE}/WS-2025-03/agenda", json={"topic": "closure"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_unknown_workshop_is_404(self, client, scenario):
        res = client.post(f"{BASE}/WS-NOPE/agenda", json={"riskId": "RISK-010", "topic": "newRisks"})
        assert res.status_code == 404
        assert res.get_json()["error"] == "Workshop not found"

    def test_unknown_treatment_is_404(self, client, scenario):
        res = client.post(f"{BASE}/WS-2025-03/agenda", json={
            "riskId": "RISK-010", "topic": "closure", "selectedTreatments": ["TREAT-010-07"],
        })
        assert res.status_code == 404

    def test_closed_workshop_is_400(self, client, make_risk, make_workshop):
        make_risk("RISK-001", "Draft")
        make_workshop("WS-OLD", "Completed")
        res = client.post(f"{BASE}/WS-OLD/agenda", json={"riskId": "RISK-001", "topic": "newRisks"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_INVALID_STATE"

    def test_non_json_body_is_415(self, client, scenario):
        res = client.post(f"{BASE}/WS-2025-03/agenda", data="riskId=RISK-010", content_type="text/plain")
        assert res.status_code == 415


# ═════════════════════════════════════════════════════════════════════════════
# CRUD + minutes
# ═════════════════════════════════════════════════════════════════════════════


class TestWorkshopCRUD:
    def test_create_ignores_agenda_arrays(self, client):
        res = client.post(BASE, json={
            "id": "WS-2030-01",
            "date": _tomorrow(),
            "facilitator": "Chair",
            "status": "Pending Agenda",
            "participants": ["A", "B"],
            "newRisks": [{"riskId": "RISK-999"}],
        })
        assert res.status_code == 201
        data = res.get_json()["data"]
        assert data["id"] == "WS-2030-01"
        assert data["participants"] == ["A", "B"]
        assert data["newRisks"] == []

    def test_create_requires_fields(self, client):
        res = client.post(BASE, json={"id": "WS-X"})
        assert res.status_code == 400
        assert res.get_json()["details"]["errors"]

    def test_create_duplicate_id(self, client, make_workshop):
        make_workshop("WS-DUP")
        res = client.post(BASE, json={
            "id": "WS-DUP", "date": _tomorrow(), "facilitator": "Chair", "status": "Planned",
        })
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_DUPLICATE_ENTRY"

    def test_list_filters_by_status(self, client, make_workshop):
        make_workshop("WS-A", "Planned")
        make_workshop("WS-B", "Completed")
        res = client.get(f"{BASE}?status=Planned")
        body = res.get_json()
        assert body["total"] == 1
        assert body["data"][0]["id"] == "WS-A"

    def test_get_by_store_id(self, client, make_workshop):
        ws = make_workshop("WS-NUM")
        res = client.get(f"{BASE}/{ws.id}")
        assert res.status_code == 200
        assert res.get_json()["data"]["id"] == "WS-NUM"

    def test_update_minutes_of_existing_item(self, client, scenario):
        client.post(f"{BASE}/WS-2025-03/agenda", json={
            "riskId": "RISK-010", "topic": "closure", "selectedTreatments": ["TREAT-010-01"],
        })
        res = client.put(f"{BASE}/WS-2025-03", json={
            "closure": [{"riskId": "RISK-010", "outcome": "Closure approved", "toDo": "Archive evidence"}],
        })
        assert res.status_code == 200
        item = res.get_json()["data"]["closure"][0]
        assert item["outcome"] == "Closure approved"
        assert item["toDo"] == "Archive evidence"
        assert item["selectedTreatments"] == ["TREAT-010-01"]

    def test_update_cannot_add_agenda_items(self, client, scenario):
        res = client.put(f"{BASE}/WS-2025-03", json={"newRisks": [{"riskId": "RISK-010"}]})
        assert res.status_code == 400
        ws = client.get(f"{BASE}/WS-2025-03").get_json()["data"]
        assert ws["newRisks"] == []

    @pytest.mark.parametrize("payload", [{"notes": {"a": 1}}, {"facilitator": ["Chair"]}])
    def test_update_rejects_non_string_text(self, client, scenario, payload):
        res = client.put(f"{BASE}/WS-2025-03", json=payload)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_create_rejects_non_string_notes(self, client):
        res = client.post(BASE, json={
            "id": "WS-2030-02", "date": _tomorrow(), "facilitator": "Chair",
            "status": "Planned", "notes": {"a": 1},
        })
        assert res.status_code == 400
        assert res.get_json()["details"]["errors"] == ["Invalid notes: must be a string"]

    def test_update_cannot_change_id(self, client, scenario):
        res = client.put(f"{BASE}/WS-2025-03", json={"id": "WS-OTHER"})
        assert res.status_code == 400

    def test_delete(self, client, make_workshop):
        make_workshop("WS-DEL")
        assert client.delete(f"{BASE}/WS-DEL").status_code == 200
        assert client.get(f"{BASE}/WS-DEL").status_code == 404


class TestHealth:
    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}

    def test_live_pings_database(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["database"]["status"] == "ok"

    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_unknown_api_route_is_enveloped_404(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["success"] is False
