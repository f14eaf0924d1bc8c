from collections import namedtuple
from collections.abc import Mapping

from fleetpm.pm_cycle import LOW_STOCK_THRESHOLD, WARNING_LEAD
from fleetpm.repository import Repository

CRITICAL = "critical"
WARNING = "warning"

Alert = namedtuple("Alert", ["severity", "subject", "detail", "subject_type", "subject_id"])


def _field(item, name, default=0):
    value = item.get(name) if isinstance(item, Mapping) else getattr(item, name, None)
    return default if value is None else value


class AlertService:
    @staticmethod
    def evaluate(equipment, supplies):
        """Derive alerts from equipment and supply snapshots.

        Accepts model instances or snapshot dicts. Equipment alerts come first,
        in input order, followed by low-stock alerts.
        """
        alerts = []
        for machine in equipment:
            current = int(_field(machine, "current_hm"))
            due = int(_field(machine, "next_pm_due_hm"))
            name = _field(machine, "name", "")
            machine_id = _field(machine, "id", None)
            if current >= due:
                alerts.append(Alert(CRITICAL, f"PM overdue: {name}", f"{current}h / {due}h", "equipment", machine_id))
            elif current >= due - WARNING_LEAD:
                alerts.append(Alert(WARNING, f"PM due soon: {name}", f"{due - current}h left", "equipment", machine_id))

        for supply in supplies:
            stock = int(_field(supply, "stock"))
            if stock < LOW_STOCK_THRESHOLD:
                name = _field(supply, "name", "")
                unit = _field(supply, "unit", "units")
                alerts.append(Alert(WARNING, f"Low stock: {name}", f"{stock} {unit} left", "supply", _field(supply, "id", None)))
        return alerts

    @staticmethod
    def for_account(account_id):
        repo = Repository(account_id)
        return AlertService.evaluate(repo.list("equipment"), repo.list("supplies"))

    @staticmethod
    def overview(account_id):
        repo = Repository(account_id)
        equipment = repo.list("equipment")
        supplies = repo.list("supplies")
        alerts = AlertService.evaluate(equipment, supplies)
        return {
            "total_equipment": len(equipment),
            "equipment_in_use": sum(1 for machine in equipment if machine.in_use),
            "low_stock_items": sum(1 for supply in supplies if supply.stock < LOW_STOCK_THRESHOLD),
            "critical_alerts": sum(1 for alert in alerts if alert.severity == CRITICAL),
            "warning_alerts": sum(
                1 for alert in alerts if alert.severity == WARNING and alert.subject_type == "equipment"
            ),
            "maintenance_records": repo.query("maintenance_history").count(),
            "usage_records": repo.query("usage_history").count(),
        }
