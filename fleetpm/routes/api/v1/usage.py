from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from fleetpm.decorators import OPERATOR_ROLES, role_required
from fleetpm.services import UsageService
from fleetpm.services.validators import parse_int

api_usage_bp = Blueprint("api_usage", __name__)


@api_usage_bp.post("/start")
@login_required
@role_required(*OPERATOR_ROLES)
def start_session():
    payload = request.get_json(silent=True) or {}
    session = UsageService.start(
        current_user.account_id, parse_int(payload.get("equipment_id"), "Equipment id"), current_user
    )
    return jsonify(session.to_dict()), 201


@api_usage_bp.post("/end")
@login_required
@role_required(*OPERATOR_ROLES)
def end_session():
    payload = request.get_json(silent=True) or {}
    record = UsageService.end(
        current_user.account_id,
        current_user.id,
        end_hm=payload.get("end_hm"),
        end_fuel=payload.get("end_fuel"),
        confirm_high_consumption=bool(payload.get("confirm", False)),
        expected_version=payload.get("version"),
    )
    return jsonify(record.to_dict())


@api_usage_bp.get("/active")
@login_required
def my_session():
    session = UsageService.active_for(current_user.account_id, current_user.id)
    return jsonify(session.to_dict() if session else None)


@api_usage_bp.get("/sessions")
@login_required
def active_sessions():
    return jsonify([session.to_dict() for session in UsageService.list_active(current_user.account_id)])


@api_usage_bp.get("/history")
@login_required
def history():
    rows = UsageService.list_history(
        current_user.account_id,
        equipment_id=request.args.get("equipment_id", type=int),
        limit=min(request.args.get("limit", default=50, type=int), 200),
    )
    return jsonify([row.to_dict() for row in rows])
