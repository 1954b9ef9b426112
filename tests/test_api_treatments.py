"""
Treatment API: CRUD, extension requests and approval decisions.
"""
from datetime import date, timedelta

import pytest

BASE = "/api/v1/treatments"


def _future(days=14):
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.fixture()
def treatment(make_risk, make_treatment):
    make_risk("RISK-010", "Treatment")
    return make_treatment("RISK-010", "TREAT-010-01")


def _create_payload(**overrides):
    data = {
        "riskId": "RISK-010",
        "riskTreatment": "Enable MFA on admin portal",
        "riskTreatmentOwner": "IAM team",
        "treatmentJiraTicket": "SEC-77",
        "dateRiskTreatmentDue": _future(60),
    }
    data.update(overrides)
    return data


class TestTreatmentCRUD:
    def test_create_assigns_next_id(self, client, treatment):
        res = client.post(BASE, json=_create_payload())
        assert res.status_code == 201
        data = res.get_json()["data"]
        assert data["treatmentId"] == "TREAT-010-02"
        assert data["closureApproval"] == "Pending"
        assert data["numberOfExtensions"] == 0
        assert data["extensions"] == []

    def test_create_ignores_lifecycle_fields(self, client, make_risk):
        make_risk("RISK-020")
        res = client.post(BASE, json=_create_payload(
            riskId="RISK-020", closureApproval="Approved", numberOfExtensions=4,
        ))
        data = res.get_json()["data"]
        assert data["treatmentId"] == "TREAT-020-01"
        assert data["closureApproval"] == "Pending"
        assert data["numberOfExtensions"] == 0

    def test_create_rejects_non_string_closure_approval(self, client, treatment):
        res = client.post(BASE, json=_create_payload(closureApproval={"x": 1}))
        assert res.status_code == 400
        assert res.get_json()["details"]["errors"] == ["Invalid closureApproval: must be a string"]

    def test_create_for_unknown_risk(self, client):
        res = client.post(BASE, json=_create_payload(riskId="RISK-404"))
        assert res.status_code == 404

    def test_create_missing_fields(self, client, treatment):
        res = client.post(BASE, json={"riskId": "RISK-010"})
        assert res.status_code == 400

    def test_get_includes_available_actions(self, client, treatment):
        data = client.get(f"{BASE}/RISK-010/TREAT-010-01").get_json()["data"]
        assert data["availableClosureActions"] == ["approve", "reject"]

    def test_list_for_risk(self, client, treatment, make_treatment):
        make_treatment("RISK-010", "TREAT-010-02")
        data = client.get(f"{BASE}/RISK-010").get_json()["data"]
        assert [t["treatmentId"] for t in data] == ["TREAT-010-01", "TREAT-010-02"]

    def test_update_plain_fields(self, client, treatment):
        res = client.put(f"{BASE}/RISK-010/TREAT-010-01", json={"notes": "Vendor engaged"})
        assert res.status_code == 200
        assert res.get_json()["data"]["notes"] == "Vendor engaged"

    @pytest.mark.parametrize("field,value", [
        ("closureApproval", "Approved"),
        ("numberOfExtensions", 3),
        ("extensions", []),
        ("closureApprovedBy", "me"),
    ])
    def test_update_rejects_lifecycle_fields(self, client, treatment, field, value):
        res = client.put(f"{BASE}/RISK-010/TREAT-010-01", json={field: value})
        assert res.status_code == 400
        data = client.get(f"{BASE}/RISK-010/TREAT-010-01").get_json()["data"]
        assert data["closureApproval"] == "Pending"
        assert data["numberOfExtensions"] == 0

    def test_delete(self, client, treatment):
        assert client.delete(f"{BASE}/RISK-010/TREAT-010-01").status_code == 200
        assert client.get(f"{BASE}/RISK-010/TREAT-010-01").status_code == 404


class TestExtensionEndpoint:
    def test_submit_extension(self, client, treatment):
        res = client.post(f"{BASE}/RISK-010/TREAT-010-01/extensions", json={
            "extendedDueDate": _future(),
            "justification": "Change freeze over year end",
        })
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["message"] == "Extension request submitted successfully"
        assert body["extension"]["status"] == "Pending Approval"
        assert body["extension"]["approver"] == "Pending Approval"

        data = client.get(f"{BASE}/RISK-010/TREAT-010-01").get_json()["data"]
        assert data["numberOfExtensions"] == 1
        assert len(data["extensions"]) == 1
        assert data["extendedDueDate"] == _future()

    def test_past_date_is_400(self, client, treatment):
        res = client.post(f"{BASE}/RISK-010/TREAT-010-01/extensions", json={
            "extendedDueDate": (date.today() - timedelta(days=2)).isoformat(),
            "justification": "late",
        })
        assert res.status_code == 400
        data = client.get(f"{BASE}/RISK-010/TREAT-010-01").get_json()["data"]
        assert data["numberOfExtensions"] == 0

    def test_missing_treatment_is_404(self, client, treatment):
        res = client.post(f"{BASE}/RISK-010/TREAT-010-09/extensions", json={
            "extendedDueDate": _future(), "justification": "x",
        })
        assert res.status_code == 404

    def test_decide_extension(self, client, treatment):
        client.post(f"{BASE}/RISK-010/TREAT-010-01/extensions", json={
            "extendedDueDate": _future(), "justification": "x",
        })
        res = client.post(f"{BASE}/RISK-010/TREAT-010-01/extensions/0/decision",
                          json={"decision": "approve", "approver": "CISO"})
        assert res.status_code == 200
        assert res.get_json()["extension"]["status"] == "Approved"


class TestClosureDecisionEndpoint:
    def test_approve_then_block_agenda(self, client, treatment, make_workshop):
        make_workshop("WS-2025-03")
        res = client.post(f"{BASE}/RISK-010/TREAT-010-01/closure-decision",
                          json={"decision": "approve", "approver": "Risk Committee"})
        assert res.status_code == 200
        assert res.get_json()["data"]["newStatus"] == "Approved"

        res = client.post("/api/v1/workshops/WS-2025-03/agenda", json={
            "riskId": "RISK-010", "topic": "closure", "selectedTreatments": ["TREAT-010-01"],
        })
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_INVALID_STATE"

    def test_second_decision_is_400(self, client, treatment):
        url = f"{BASE}/RISK-010/TREAT-010-01/closure-decision"
        client.post(url, json={"decision": "reject", "approver": "Risk Committee"})
        res = client.post(url, json={"decision": "approve", "approver": "Risk Committee"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_INVALID_STATE"
