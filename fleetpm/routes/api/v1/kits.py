from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from fleetpm.decorators import ADMIN, role_required
from fleetpm.services import KitService

api_kit_bp = Blueprint("api_kit", __name__)


@api_kit_bp.get("")
@login_required
def list_kits():
    return jsonify(KitService.all_kits(current_user.account_id))


@api_kit_bp.get("/<pm_type>")
@login_required
def get_kit(pm_type):
    return jsonify({"pm_type": pm_type.upper(), "items": KitService.items_for(current_user.account_id, pm_type)})


@api_kit_bp.post("/<pm_type>/items")
@login_required
@role_required(ADMIN)
def add_kit_item(pm_type):
    payload = request.get_json(silent=True) or {}
    items = KitService.add_item(
        current_user.account_id,
        pm_type,
        supply_id=payload.get("supply_id"),
        qty=payload.get("qty", 1),
        mandatory=payload.get("mandatory", True),
    )
    return jsonify({"pm_type": pm_type.upper(), "items": items}), 201


@api_kit_bp.delete("/<pm_type>/items/<int:index>")
@login_required
@role_required(ADMIN)
def remove_kit_item(pm_type, index):
    removed = KitService.remove_item(current_user.account_id, pm_type, index)
    return jsonify({"removed": removed, "items": KitService.items_for(current_user.account_id, pm_type)})
