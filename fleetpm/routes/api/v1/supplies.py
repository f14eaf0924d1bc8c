from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from fleetpm.decorators import ADMIN, OPERATOR_ROLES, role_required
from fleetpm.services import SupplyService

api_supply_bp = Blueprint("api_supply", __name__)


@api_supply_bp.get("")
@login_required
def list_supplies():
    rows = SupplyService.list_supplies(current_user.account_id, search=request.args.get("q"))
    return jsonify([supply.to_dict() for supply in rows])


@api_supply_bp.post("")
@login_required
@role_required(*OPERATOR_ROLES)
def create_supply():
    payload = request.get_json(silent=True) or {}
    supply = SupplyService.create_supply(current_user.account_id, payload)
    return jsonify(supply.to_dict()), 201


@api_supply_bp.patch("/<int:supply_id>")
@login_required
@role_required(ADMIN)
def update_supply(supply_id):
    payload = request.get_json(silent=True) or {}
    supply = SupplyService.update_supply(current_user.account_id, supply_id, payload)
    return jsonify(supply.to_dict())


@api_supply_bp.post("/<int:supply_id>/restock")
@login_required
@role_required(*OPERATOR_ROLES)
def restock_supply(supply_id):
    payload = request.get_json(silent=True) or {}
    supply = SupplyService.restock(current_user.account_id, supply_id, payload.get("qty"))
    return jsonify(supply.to_dict())


@api_supply_bp.delete("/<int:supply_id>")
@login_required
@role_required(ADMIN)
def delete_supply(supply_id):
    SupplyService.delete_supply(current_user.account_id, supply_id)
    return jsonify({"ok": True})
