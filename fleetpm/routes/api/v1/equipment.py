from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from fleetpm.decorators import ADMIN, OPERATOR_ROLES, role_required
from fleetpm.pm_cycle import PM_INTERVAL, PM_SEQUENCE, recommend_index
from fleetpm.repository import Repository
from fleetpm.services import EquipmentService
from fleetpm.services.validators import parse_int

api_equipment_bp = Blueprint("api_equipment", __name__)


@api_equipment_bp.get("")
@login_required
def list_equipment():
    return jsonify([machine.to_dict() for machine in EquipmentService.list_equipment(current_user.account_id)])


@api_equipment_bp.get("/<int:equipment_id>")
@login_required
def get_equipment(equipment_id):
    return jsonify(Repository(current_user.account_id).get("equipment", equipment_id).to_dict())


@api_equipment_bp.get("/recommended-schedule")
@login_required
def recommended_schedule():
    hm = parse_int(request.args.get("current_hm"), "Hour-meter", minimum=0)
    index = recommend_index(hm)
    return jsonify(
        {
            "current_hm": hm,
            "sequence_index": index,
            "next_pm_type": PM_SEQUENCE[index],
            "next_pm_due_hm": hm + PM_INTERVAL,
        }
    )


@api_equipment_bp.post("")
@login_required
@role_required(*OPERATOR_ROLES)
def register_equipment():
    payload = request.get_json(silent=True) or {}
    equipment = EquipmentService.register(current_user.account_id, payload)
    return jsonify(equipment.to_dict()), 201


@api_equipment_bp.patch("/<int:equipment_id>")
@login_required
@role_required(ADMIN)
def update_equipment(equipment_id):
    payload = request.get_json(silent=True) or {}
    equipment = EquipmentService.update(current_user.account_id, equipment_id, payload)
    return jsonify(equipment.to_dict())


@api_equipment_bp.post("/<int:equipment_id>/refuel")
@login_required
@role_required(*OPERATOR_ROLES)
def refuel_equipment(equipment_id):
    payload = request.get_json(silent=True) or {}
    equipment = EquipmentService.refuel(
        current_user.account_id,
        equipment_id,
        payload.get("fuel_level"),
        expected_version=payload.get("version"),
    )
    return jsonify(equipment.to_dict())


@api_equipment_bp.delete("/<int:equipment_id>")
@login_required
@role_required(ADMIN)
def delete_equipment(equipment_id):
    EquipmentService.delete(current_user.account_id, equipment_id)
    return jsonify({"ok": True})
