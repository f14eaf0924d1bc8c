from fleetpm.services.alert_service import AlertService
from fleetpm.services.auth_service import AuthService
from fleetpm.services.equipment_service import EquipmentService
from fleetpm.services.file_service import FileService
from fleetpm.services.kit_service import KitService
from fleetpm.services.maintenance_service import MaintenanceService
from fleetpm.services.supply_service import SupplyService
from fleetpm.services.usage_service import UsageService

__all__ = [
    "AlertService",
    "AuthService",
    "EquipmentService",
    "FileService",
    "KitService",
    "MaintenanceService",
    "SupplyService",
    "UsageService",
]
