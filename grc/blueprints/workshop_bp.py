"""
Workshop endpoints: CRUD, meeting minutes, agenda additions.

    GET/POST         /workshops
    GET/PUT/DELETE   /workshops/<workshop_ref>
    POST             /workshops/<workshop_ref>/agenda

``workshop_ref`` is the workshop's natural id (e.g. WS-2025-03) or its
numeric store id.
"""

from flask import Blueprint, request

from grc.blueprints import json_body, paginate
from grc.services import workshop_service
from grc.services.workshop_agenda import add_risk_to_agenda
from grc.utils.errors import api_success

workshop_bp = Blueprint("workshops", __name__, url_prefix="/api/v1")


@workshop_bp.route("/workshops", methods=["GET"])
def list_workshops():
    items, total = paginate(workshop_service.list_workshops(request.args.get("status")))
    return api_success([w.to_dict() for w in items], total=total)


@workshop_bp.route("/workshops", methods=["POST"])
def create_workshop():
    ws = workshop_service.create_workshop(json_body())
    return api_success(ws.to_dict(), message="Workshop created successfully", status=201)


@workshop_bp.route("/workshops/<workshop_ref>", methods=["GET"])
def get_workshop(workshop_ref):
    return api_success(workshop_service.get_workshop(workshop_ref).to_dict())


@workshop_bp.route("/workshops/<workshop_ref>", methods=["PUT"])
def update_workshop(workshop_ref):
    """Update workshop fields and minutes of risks already on the agenda."""
    ws = workshop_service.update_workshop(workshop_ref, json_body())
    return api_success(ws.to_dict(), message="Workshop updated successfully")


@workshop_bp.route("/workshops/<workshop_ref>", methods=["DELETE"])
def delete_workshop(workshop_ref):
    workshop_service.delete_workshop(workshop_ref)
    return api_success(message="Workshop deleted successfully")


@workshop_bp.route("/workshops/<workshop_ref>/agenda", methods=["POST"])
def add_agenda_item(workshop_ref):
    data = json_body()
    added = add_risk_to_agenda(
        workshop_ref,
        data.get("riskId"),
        data.get("topic"),
        data.get("selectedTreatments"),
    )
    return api_success(
        added,
        message=f"Risk {added['riskId']} successfully added to {added['topic']} "
                f"section of workshop {added['workshopId']}",
    )
