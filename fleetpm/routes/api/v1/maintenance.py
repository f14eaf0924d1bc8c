from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from fleetpm.decorators import OPERATOR_ROLES, role_required
from fleetpm.services import MaintenanceService
from fleetpm.services.validators import parse_int

api_maintenance_bp = Blueprint("api_maintenance", __name__)


@api_maintenance_bp.post("")
@login_required
@role_required(*OPERATOR_ROLES)
def register_maintenance():
    payload = request.get_json(silent=True) or {}
    result = MaintenanceService.execute_maintenance(
        account_id=current_user.account_id,
        equipment_id=parse_int(payload.get("equipment_id"), "Equipment id"),
        maintenance_type=payload.get("type"),
        hm_done=payload.get("hm_done"),
        fuel_level=payload.get("fuel_level"),
        supplies_used=payload.get("supplies_used") or [],
        description=payload.get("description"),
        performed_by=current_user.username,
        expected_version=payload.get("version"),
        photos=payload.get("photos") or [],
    )
    return (
        jsonify(
            {
                "equipment": result.equipment.to_dict(),
                "record": result.record.to_dict(),
                "supplies": [supply.to_dict() for supply in result.supplies],
            }
        ),
        201,
    )


@api_maintenance_bp.get("/expected-items/<int:equipment_id>")
@login_required
def expected_items(equipment_id):
    return jsonify(MaintenanceService.expected_items(current_user.account_id, equipment_id))


@api_maintenance_bp.get("/history")
@login_required
def history():
    rows = MaintenanceService.list_history(
        current_user.account_id,
        maintenance_type=request.args.get("type"),
        equipment_id=request.args.get("equipment_id", type=int),
        limit=min(request.args.get("limit", default=50, type=int), 200),
    )
    return jsonify([row.to_dict() for row in rows])
