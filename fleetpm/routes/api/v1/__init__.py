from flask import Blueprint

from fleetpm.routes.api.v1.alerts import api_alert_bp
from fleetpm.routes.api.v1.auth import api_auth_bp
from fleetpm.routes.api.v1.equipment import api_equipment_bp
from fleetpm.routes.api.v1.kits import api_kit_bp
from fleetpm.routes.api.v1.maintenance import api_maintenance_bp
from fleetpm.routes.api.v1.supplies import api_supply_bp
from fleetpm.routes.api.v1.usage import api_usage_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_equipment_bp, url_prefix="/equipment")
api_v1_bp.register_blueprint(api_supply_bp, url_prefix="/supplies")
api_v1_bp.register_blueprint(api_kit_bp, url_prefix="/kits")
api_v1_bp.register_blueprint(api_maintenance_bp, url_prefix="/maintenance")
api_v1_bp.register_blueprint(api_usage_bp, url_prefix="/usage")
api_v1_bp.register_blueprint(api_alert_bp, url_prefix="/alerts")
