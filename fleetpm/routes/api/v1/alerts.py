from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from fleetpm.services import AlertService

api_alert_bp = Blueprint("api_alert", __name__)


@api_alert_bp.get("")
@login_required
def list_alerts():
    return jsonify([alert._asdict() for alert in AlertService.for_account(current_user.account_id)])


@api_alert_bp.get("/overview")
@login_required
def overview():
    return jsonify(AlertService.overview(current_user.account_id))
