from fleetpm.models.account import Account
from fleetpm.models.equipment import Equipment
from fleetpm.models.maintenance_photo import MaintenancePhoto
from fleetpm.models.maintenance_record import MaintenanceRecord
from fleetpm.models.pm_kit import PmKitConfig
from fleetpm.models.supply import Supply
from fleetpm.models.usage import UsageRecord, UsageSession
from fleetpm.models.user import User

__all__ = [
    "Account",
    "User",
    "Equipment",
    "Supply",
    "PmKitConfig",
    "MaintenanceRecord",
    "MaintenancePhoto",
    "UsageSession",
    "UsageRecord",
]
