"""
Tests for alert derivation and the dashboard overview.
"""

from fleetpm.services import AlertService, MaintenanceService, UsageService
from fleetpm.services.alert_service import CRITICAL, WARNING


class TestEvaluate:
    def test_just_serviced_machine_has_no_alert(self):
        alerts = AlertService.evaluate([{"id": 1, "name": "Excavator", "current_hm": 5120, "next_pm_due_hm": 5370}], [])

        assert alerts == []

    def test_due_soon_warning(self):
        alerts = AlertService.evaluate([{"id": 1, "name": "Excavator", "current_hm": 5325, "next_pm_due_hm": 5370}], [])

        assert len(alerts) == 1
        assert alerts[0].severity == WARNING
        assert alerts[0].subject == "PM due soon: Excavator"
        assert alerts[0].detail == "45h left"

    def test_warning_window_edges(self):
        machines = [
            {"id": 1, "name": "A", "current_hm": 5319, "next_pm_due_hm": 5370},
            {"id": 2, "name": "B", "current_hm": 5320, "next_pm_due_hm": 5370},
        ]

        alerts = AlertService.evaluate(machines, [])

        assert [a.subject_id for a in alerts] == [2]

    def test_overdue_is_critical(self):
        alerts = AlertService.evaluate([{"id": 7, "name": "Dozer", "current_hm": 5370, "next_pm_due_hm": 5370}], [])

        assert alerts[0].severity == CRITICAL
        assert alerts[0].subject == "PM overdue: Dozer"
        assert alerts[0].detail == "5370h / 5370h"

    def test_low_stock_below_ten(self):
        supplies = [
            {"id": 1, "name": "Air filter", "stock": 4, "unit": "Units"},
            {"id": 2, "name": "Grease", "stock": 10, "unit": "Kg"},
        ]

        alerts = AlertService.evaluate([], supplies)

        assert len(alerts) == 1
        assert alerts[0].subject == "Low stock: Air filter"
        assert alerts[0].detail == "4 Units left"

    def test_equipment_alerts_come_before_stock_alerts(self):
        machines = [
            {"id": 1, "name": "A", "current_hm": 900, "next_pm_due_hm": 800},
            {"id": 2, "name": "B", "current_hm": 780, "next_pm_due_hm": 800},
        ]
        supplies = [{"id": 5, "name": "Hose", "stock": 0, "unit": "Units"}]

        alerts = AlertService.evaluate(machines, supplies)

        assert [(a.subject_type, a.subject_id) for a in alerts] == [("equipment", 1), ("equipment", 2), ("supply", 5)]


class TestAccountAlerts:
    def test_model_instances_are_accepted(self, db, account, excavator, air_filter, engine_oil):
        alerts = AlertService.for_account(account.id)

        assert [a.subject for a in alerts] == ["Low stock: Air filter"]

    def test_overview_counts(self, db, account, operator, excavator, make_equipment, air_filter, engine_oil):
        make_equipment(name="Dozer D6", current_hm=5330)
        make_equipment(name="Grader 140", current_hm=5400)
        MaintenanceService.execute_maintenance(account.id, excavator.id, "Corrective", 5130, 70)
        UsageService.start(account.id, excavator.id, operator)

        overview = AlertService.overview(account.id)

        assert overview == {
            "total_equipment": 3,
            "equipment_in_use": 1,
            "low_stock_items": 1,
            "critical_alerts": 1,
            "warning_alerts": 1,
            "maintenance_records": 1,
            "usage_records": 0,
        }
