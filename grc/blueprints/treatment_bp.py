"""
Treatment endpoints: CRUD, extension requests, closure and extension decisions.

    GET/POST         /treatments
    GET              /treatments/<risk_id>
    GET/PUT/DELETE   /treatments/<risk_id>/<treatment_id>
    POST             /treatments/<risk_id>/<treatment_id>/extensions
    POST             /treatments/<risk_id>/<treatment_id>/extensions/<index>/decision
    POST             /treatments/<risk_id>/<treatment_id>/closure-decision
"""

from flask import Blueprint, request

from grc.blueprints import json_body, paginate
from grc.services import treatment_lifecycle, treatment_service
from grc.utils.errors import api_success

treatment_bp = Blueprint("treatments", __name__, url_prefix="/api/v1")


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════


@treatment_bp.route("/treatments", methods=["GET"])
def list_treatments():
    items, total = paginate(treatment_service.list_treatments(request.args.get("riskId")))
    return api_success([t.to_dict() for t in items], total=total)


@treatment_bp.route("/treatments", methods=["POST"])
def create_treatment():
    treatment = treatment_service.create_treatment(json_body())
    return api_success(treatment.to_dict(), message="Treatment created successfully", status=201)


@treatment_bp.route("/treatments/<risk_id>", methods=["GET"])
def list_risk_treatments(risk_id):
    return api_success([t.to_dict() for t in treatment_service.list_treatments(risk_id)])


@treatment_bp.route("/treatments/<risk_id>/<treatment_id>", methods=["GET"])
def get_treatment(risk_id, treatment_id):
    treatment = treatment_service.get_treatment(risk_id, treatment_id)
    data = treatment.to_dict()
    data["availableClosureActions"] = treatment_lifecycle.available_closure_actions(treatment)
    return api_success(data)


@treatment_bp.route("/treatments/<risk_id>/<treatment_id>", methods=["PUT"])
def update_treatment(risk_id, treatment_id):
    treatment = treatment_service.update_treatment(risk_id, treatment_id, json_body())
    return api_success(treatment.to_dict(), message="Treatment updated successfully")


@treatment_bp.route("/treatments/<risk_id>/<treatment_id>", methods=["DELETE"])
def delete_treatment(risk_id, treatment_id):
    treatment_service.delete_treatment(risk_id, treatment_id)
    return api_success(message="Treatment deleted successfully")


# ═════════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═════════════════════════════════════════════════════════════════════════════


@treatment_bp.route("/treatments/<risk_id>/<treatment_id>/extensions", methods=["POST"])
def request_extension(risk_id, treatment_id):
    """Append a Pending Approval extension request to the treatment history."""
    data = json_body()
    extension = treatment_lifecycle.request_extension(
        risk_id,
        treatment_id,
        data.get("extendedDueDate"),
        data.get("justification"),
    )
    return api_success(message="Extension request submitted successfully", extension=extension)


@treatment_bp.route(
    "/treatments/<risk_id>/<treatment_id>/extensions/<int:index>/decision", methods=["POST"]
)
def decide_extension(risk_id, treatment_id, index):
    data = json_body()
    extension = treatment_lifecycle.decide_extension(
        risk_id, treatment_id, index, data.get("decision"), data.get("approver"),
    )
    return api_success(message=f"Extension {extension['status'].lower()}", extension=extension)


@treatment_bp.route("/treatments/<risk_id>/<treatment_id>/closure-decision", methods=["POST"])
def decide_closure(risk_id, treatment_id):
    data = json_body()
    result = treatment_lifecycle.decide_closure(
        risk_id, treatment_id, data.get("decision"), data.get("approver"),
    )
    return api_success(result, message=f"Treatment closure {result['newStatus'].lower()}")
