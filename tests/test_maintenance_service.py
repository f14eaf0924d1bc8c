"""
Tests for the maintenance transaction engine.
"""

import base64
import io

import pytest
from PIL import Image
from sqlalchemy import text

from fleetpm.errors import (
    InsufficientStock,
    InvalidFuelLevel,
    InvalidHourMeter,
    MissingMandatorySupply,
    NotFound,
    TransactionConflict,
    ValidationError,
)
from fleetpm.models import Equipment, MaintenanceRecord, Supply
from fleetpm.repository import Repository
from fleetpm.services import FileService, KitService, MaintenanceService


def _png_data_url():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 120, 0)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _state(db, equipment_id, *supply_ids):
    db.session.expire_all()
    equipment = db.session.get(Equipment, equipment_id).to_dict()
    stock = {supply_id: db.session.get(Supply, supply_id).stock for supply_id in supply_ids}
    return equipment, stock, MaintenanceRecord.query.count()


@pytest.fixture
def pm3_kit(account, engine_oil, oil_filter, air_filter):
    KitService.add_item(account.id, "PM3", engine_oil.id, 20, mandatory=True)
    KitService.add_item(account.id, "PM3", oil_filter.id, 1, mandatory=True)
    KitService.add_item(account.id, "PM3", air_filter.id, 1, mandatory=False)


class TestScheduledMaintenance:
    def test_advances_cycle_and_records_everything(self, db, account, excavator, engine_oil, oil_filter, pm3_kit):
        result = MaintenanceService.execute_maintenance(
            account.id,
            excavator.id,
            "Scheduled",
            hm_done=5370,
            fuel_level=90,
            supplies_used=[
                {"supply_id": engine_oil.id, "qty": 20},
                {"supply_id": oil_filter.id, "qty": 1},
            ],
            performed_by="instructor",
        )

        equipment = result.equipment
        assert equipment.current_hm == 5370
        assert equipment.last_pm_hm == 5370
        assert equipment.last_pm_type == "PM3"
        assert equipment.next_pm_type == "PM1"
        assert equipment.next_pm_due_hm == 5620
        assert equipment.sequence_index == 4
        assert equipment.fuel_level == 90
        assert equipment.next_pm_due_hm == equipment.last_pm_hm + 250

        record = result.record
        assert record.maintenance_type == "Scheduled"
        assert record.pm_type == "PM3"
        assert record.hm_done_at == 5370
        assert [line["qty"] for line in record.supplies_consumed] == [20, 1]

        assert {s.id: s.stock for s in result.supplies} == {engine_oil.id: 130, oil_filter.id: 79}

    def test_missing_mandatory_item_fails_whatever_optionals_are_sent(
        self, db, account, excavator, engine_oil, oil_filter, air_filter, pm3_kit
    ):
        before = _state(db, excavator.id, engine_oil.id, oil_filter.id, air_filter.id)

        with pytest.raises(MissingMandatorySupply):
            MaintenanceService.execute_maintenance(
                account.id,
                excavator.id,
                "Scheduled",
                hm_done=5370,
                fuel_level=90,
                supplies_used=[
                    {"supply_id": engine_oil.id, "qty": 20},
                    {"supply_id": air_filter.id, "qty": 1},
                ],
            )

        assert _state(db, excavator.id, engine_oil.id, oil_filter.id, air_filter.id) == before

    def test_kit_only_applies_to_upcoming_pm_type(self, db, account, loader, engine_oil, pm3_kit):
        # The loader is due for PM2, which has no kit configured.
        result = MaintenanceService.execute_maintenance(account.id, loader.id, "Scheduled", 510, 60)

        assert result.equipment.last_pm_type == "PM2"
        assert result.equipment.next_pm_type == "PM1"
        assert result.equipment.sequence_index == 2


class TestCorrectiveMaintenance:
    def test_keeps_cycle_and_ignores_kit(self, db, account, excavator, oil_filter, pm3_kit):
        result = MaintenanceService.execute_maintenance(
            account.id,
            excavator.id,
            "Corrective",
            hm_done=5200,
            fuel_level=50,
            supplies_used=[{"supply_id": oil_filter.id, "qty": 2}],
            description="Replaced leaking hose",
        )

        equipment = result.equipment
        assert equipment.current_hm == 5200
        assert equipment.last_pm_hm == 5200
        assert equipment.next_pm_type == "PM3"
        assert equipment.next_pm_due_hm == 5370
        assert equipment.sequence_index == 3
        assert equipment.last_pm_type == "PM1"
        assert result.record.pm_type is None
        assert result.record.description == "Replaced leaking hose"
        assert result.supplies[0].stock == 78


class TestPreconditions:
    def test_hour_meter_below_current_rejected(self, db, account, excavator, engine_oil):
        before = _state(db, excavator.id, engine_oil.id)

        with pytest.raises(InvalidHourMeter):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5119, 80, [{"supply_id": engine_oil.id, "qty": 1}]
            )

        assert _state(db, excavator.id, engine_oil.id) == before

    def test_insufficient_stock_changes_nothing(self, db, account, excavator, engine_oil, air_filter):
        before = _state(db, excavator.id, engine_oil.id, air_filter.id)

        with pytest.raises(InsufficientStock):
            MaintenanceService.execute_maintenance(
                account.id,
                excavator.id,
                "Corrective",
                5300,
                80,
                [{"supply_id": engine_oil.id, "qty": 10}, {"supply_id": air_filter.id, "qty": 5}],
            )

        assert _state(db, excavator.id, engine_oil.id, air_filter.id) == before

    def test_repeated_lines_are_summed_against_stock(self, db, account, excavator, air_filter):
        with pytest.raises(InsufficientStock):
            MaintenanceService.execute_maintenance(
                account.id,
                excavator.id,
                "Corrective",
                5300,
                80,
                [{"supply_id": air_filter.id, "qty": 3}, {"supply_id": air_filter.id, "qty": 2}],
            )

        db.session.expire_all()
        assert db.session.get(Supply, air_filter.id).stock == 4

    def test_unknown_supply_is_insufficient_stock(self, db, account, excavator):
        with pytest.raises(InsufficientStock):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5300, 80, [{"supply_id": 9999, "qty": 1}]
            )

    def test_supply_from_another_account_is_not_visible(self, db, account, other_account, excavator):
        foreign = Supply(account_id=other_account.id, name="Grease", stock=50)
        db.session.add(foreign)
        db.session.commit()

        with pytest.raises(InsufficientStock):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5300, 80, [{"supply_id": foreign.id, "qty": 1}]
            )

    def test_invalid_inputs(self, db, account, excavator, engine_oil):
        with pytest.raises(ValidationError):
            MaintenanceService.execute_maintenance(account.id, excavator.id, "Overhaul", 5300, 80)
        with pytest.raises(InvalidFuelLevel):
            MaintenanceService.execute_maintenance(account.id, excavator.id, "Corrective", 5300, 101)
        with pytest.raises(ValidationError):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5300, 80, [{"supply_id": engine_oil.id, "qty": 0}]
            )
        with pytest.raises(NotFound):
            MaintenanceService.execute_maintenance(account.id, 424242, "Corrective", 5300, 80)


class TestAtomicity:
    def test_guarded_decrement_rolls_back_staged_writes(self, db, account, excavator, air_filter):
        repo = Repository(account.id)
        equipment = repo.get("equipment", excavator.id)
        record = MaintenanceRecord(
            account_id=account.id,
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            maintenance_type="Corrective",
            hm_done_at=5400,
            fuel_level=10,
            supplies_consumed=[],
        )
        tx = repo.transaction()
        tx.update(equipment, current_hm=5400, fuel_level=10)
        tx.insert(record)
        tx.decrement_stock(air_filter.id, 5)

        with pytest.raises(InsufficientStock):
            tx.commit()

        db.session.expire_all()
        assert db.session.get(Equipment, excavator.id).current_hm == 5120
        assert db.session.get(Supply, air_filter.id).stock == 4
        assert MaintenanceRecord.query.count() == 0

    def test_concurrent_equipment_write_is_a_conflict(self, db, account, excavator, engine_oil):
        db.session.get(Equipment, excavator.id)
        # Another writer bumps the row behind this session's back.
        db.session.execute(text("UPDATE equipment SET version = version + 1 WHERE id = :id"), {"id": excavator.id})

        with pytest.raises(TransactionConflict):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5300, 80, [{"supply_id": engine_oil.id, "qty": 5}]
            )

        db.session.expire_all()
        assert db.session.get(Supply, engine_oil.id).stock == 150
        assert MaintenanceRecord.query.count() == 0

    def test_stale_expected_version_is_a_conflict(self, db, account, excavator):
        with pytest.raises(TransactionConflict):
            MaintenanceService.execute_maintenance(
                account.id, excavator.id, "Corrective", 5300, 80, expected_version=excavator.version + 1
            )


class TestReads:
    def test_expected_items_carry_current_stock(self, db, account, excavator, engine_oil, air_filter, pm3_kit):
        items = MaintenanceService.expected_items(account.id, excavator.id)

        assert items[0]["supply_id"] == engine_oil.id
        assert items[0]["stock"] == 150
        assert items[2]["stock"] == 4
        assert items[2]["mandatory"] is False

    def test_history_filtered_by_type_newest_first(self, db, account, excavator):
        MaintenanceService.execute_maintenance(account.id, excavator.id, "Corrective", 5200, 80)
        MaintenanceService.execute_maintenance(account.id, excavator.id, "Scheduled", 5370, 80)
        MaintenanceService.execute_maintenance(account.id, excavator.id, "Corrective", 5400, 80)

        corrective = MaintenanceService.list_history(account.id, maintenance_type="corrective")
        everything = MaintenanceService.list_history(account.id)

        assert [r.hm_done_at for r in corrective] == [5400, 5200]
        assert [r.hm_done_at for r in everything] == [5400, 5370, 5200]


class TestPhotos:
    def test_bad_photo_is_dropped_without_aborting(self, db, account, excavator):
        result = MaintenanceService.execute_maintenance(
            account.id,
            excavator.id,
            "Corrective",
            5200,
            80,
            photos=[_png_data_url(), "data:image/png;base64,bm90LWFuLWltYWdl"],
        )

        db.session.expire_all()
        record = db.session.get(MaintenanceRecord, result.record.id)
        assert len(record.photos) == 1
        assert record.photos[0].path.endswith(".png")
        assert db.session.get(Equipment, excavator.id).current_hm == 5200

    def test_unexpected_storage_error_never_reaches_caller(self, db, account, excavator, monkeypatch):
        def broken_save(data_url, upload_root):
            raise RuntimeError("disk unplugged")

        monkeypatch.setattr(FileService, "save_camera_data_url", broken_save)

        result = MaintenanceService.execute_maintenance(
            account.id, excavator.id, "Corrective", 5200, 80, photos=[_png_data_url()]
        )

        db.session.expire_all()
        assert db.session.get(MaintenanceRecord, result.record.id).photos == []

    def test_photos_validated_before_any_write(self, db, account, excavator):
        with pytest.raises(ValidationError):
            MaintenanceService.execute_maintenance(account.id, excavator.id, "Corrective", 5200, 80, photos=[5])

        assert MaintenanceRecord.query.count() == 0
        db.session.expire_all()
        assert db.session.get(Equipment, excavator.id).current_hm == 5120
