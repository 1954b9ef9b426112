"""
Risk register endpoints.

    GET/POST         /risks
    GET              /risks/next-id
    GET/PUT/DELETE   /risks/<risk_id>
    GET              /risks/<risk_id>/agenda-topics
"""

from flask import Blueprint, request

from grc.blueprints import json_body, paginate
from grc.services import risk_service
from grc.utils.errors import api_success

risk_bp = Blueprint("risks", __name__, url_prefix="/api/v1")


@risk_bp.route("/risks", methods=["GET"])
def list_risks():
    """List risks, optionally filtered by ?phase=."""
    items, total = paginate(risk_service.list_risks(request.args.get("phase")))
    return api_success([r.to_dict() for r in items], total=total)


@risk_bp.route("/risks", methods=["POST"])
def create_risk():
    risk = risk_service.create_risk(json_body())
    return api_success(risk.to_dict(), message="Risk created successfully", status=201)


@risk_bp.route("/risks/next-id", methods=["GET"])
def next_risk_id():
    return api_success(risk_service.generate_next_risk_id())


@risk_bp.route("/risks/<risk_id>", methods=["GET"])
def get_risk(risk_id):
    return api_success(risk_service.get_risk(risk_id).to_dict())


@risk_bp.route("/risks/<risk_id>", methods=["PUT"])
def update_risk(risk_id):
    risk = risk_service.update_risk(risk_id, json_body())
    return api_success(risk.to_dict(), message="Risk updated successfully")


@risk_bp.route("/risks/<risk_id>", methods=["DELETE"])
def delete_risk(risk_id):
    risk_service.delete_risk(risk_id)
    return api_success(message="Risk deleted successfully")


@risk_bp.route("/risks/<risk_id>/agenda-topics", methods=["GET"])
def risk_agenda_topics(risk_id):
    """Which workshop agenda topics the risk's current phase allows."""
    return api_success(risk_service.agenda_topics_for(risk_id))
