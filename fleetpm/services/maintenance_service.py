import logging
from collections import namedtuple

from flask import current_app

from fleetpm.errors import (
    AppError,
    InsufficientStock,
    InvalidFuelLevel,
    InvalidHourMeter,
    MissingMandatorySupply,
    TransactionConflict,
    ValidationError,
)
from fleetpm.models import MaintenancePhoto, MaintenanceRecord, Supply
from fleetpm.models.maintenance_record import MAINTENANCE_TYPES, SCHEDULED
from fleetpm.pm_cycle import advance
from fleetpm.repository import Repository
from fleetpm.services.file_service import FileService
from fleetpm.services.kit_service import KitService
from fleetpm.services.validators import clean_text, parse_int, parse_version

logger = logging.getLogger(__name__)

MaintenanceResult = namedtuple("MaintenanceResult", ["equipment", "record", "supplies"])


class MaintenanceService:
    HISTORY_LIMIT = 50

    @staticmethod
    def _normalize_type(maintenance_type):
        normalized = maintenance_type.strip().title() if isinstance(maintenance_type, str) else None
        if normalized not in MAINTENANCE_TYPES:
            raise ValidationError(f"Maintenance type must be one of: {', '.join(MAINTENANCE_TYPES)}.")
        return normalized

    @staticmethod
    def _sum_quantities(supplies_used):
        totals = {}
        if supplies_used is not None and not isinstance(supplies_used, list):
            raise ValidationError("Supplies used must be a list.")
        for entry in supplies_used or []:
            if not isinstance(entry, dict):
                raise ValidationError("Each supply entry needs a supply_id and a qty.")
            supply_id = parse_int(entry.get("supply_id", entry.get("id")), "Supply id")
            qty = parse_int(entry.get("qty"), "Quantity", minimum=1)
            totals[supply_id] = totals.get(supply_id, 0) + qty
        return totals

    @staticmethod
    def _check_photos(photos):
        if photos is None:
            return []
        if not isinstance(photos, list) or not all(isinstance(photo, str) for photo in photos):
            raise ValidationError("Photos must be a list of image data URLs.")
        return photos

    @staticmethod
    def expected_items(account_id, equipment_id):
        """Kit for the machine's upcoming PM, with current stock for each line."""
        repo = Repository(account_id)
        equipment = repo.get("equipment", equipment_id)
        kit = KitService.items_for(account_id, equipment.next_pm_type)
        ids = {item["supply_id"] for item in kit}
        stock = {s.id: s.stock for s in repo.query("supplies").filter(Supply.id.in_(ids)).all()} if ids else {}
        return [dict(item, stock=stock.get(item["supply_id"], 0)) for item in kit]

    @staticmethod
    def execute_maintenance(
        account_id,
        equipment_id,
        maintenance_type,
        hm_done,
        fuel_level,
        supplies_used=None,
        description=None,
        performed_by=None,
        expected_version=None,
        photos=None,
    ):
        """Apply a service event to equipment, inventory and history in one commit.

        Every precondition is checked before anything is staged; the stock
        check is repeated inside the commit by the guarded decrement, so a
        concurrent consumer can still make this call fail with
        ``InsufficientStock``, but never drive stock negative.
        """
        repo = Repository(account_id)
        maintenance_type = MaintenanceService._normalize_type(maintenance_type)
        expected_version = parse_version(expected_version)
        photos = MaintenanceService._check_photos(photos)
        equipment = repo.get("equipment", equipment_id, for_update=True)
        if expected_version is not None and expected_version != equipment.version:
            raise TransactionConflict("Equipment was modified by someone else. Reload and try again.")

        hm_done = parse_int(hm_done, "Hour-meter", InvalidHourMeter, minimum=0)
        if hm_done < equipment.current_hm:
            raise InvalidHourMeter(
                f"Hour-meter {hm_done}h is below the current reading of {equipment.current_hm}h."
            )
        fuel_level = parse_int(fuel_level, "Fuel level", InvalidFuelLevel, minimum=0, maximum=100)
        quantities = MaintenanceService._sum_quantities(supplies_used)

        if maintenance_type == SCHEDULED:
            for item in KitService.items_for(account_id, equipment.next_pm_type):
                if item.get("mandatory") and item["supply_id"] not in quantities:
                    raise MissingMandatorySupply(f"Missing mandatory supply: {item['name']}.")

        supplies = []
        consumed = []
        for supply_id, qty in quantities.items():
            supply = repo.query("supplies").filter(Supply.id == supply_id).first()
            if supply is None:
                raise InsufficientStock(f"Supply #{supply_id} not found in inventory.")
            if supply.stock < qty:
                raise InsufficientStock(f"Insufficient stock for {supply.name}. Stock: {supply.stock}.")
            supplies.append(supply)
            consumed.append({"supply_id": supply.id, "name": supply.name, "qty": qty, "unit": supply.unit})

        fields = {"current_hm": hm_done, "last_pm_hm": hm_done, "fuel_level": fuel_level}
        pm_type = None
        if maintenance_type == SCHEDULED:
            pm_type = equipment.next_pm_type
            step = advance(hm_done, equipment.sequence_index)
            fields.update(
                last_pm_type=pm_type,
                next_pm_type=step.next_type,
                next_pm_due_hm=step.next_due_hm,
                sequence_index=step.next_index,
            )

        record = MaintenanceRecord(
            account_id=account_id,
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            maintenance_type=maintenance_type,
            pm_type=pm_type,
            description=clean_text(description) or pm_type,
            hm_done_at=hm_done,
            fuel_level=fuel_level,
            supplies_consumed=consumed,
            performed_by=performed_by,
        )

        tx = repo.transaction()
        tx.update(equipment, **fields)
        tx.insert(record)
        for supply_id, qty in quantities.items():
            tx.decrement_stock(supply_id, qty)
        tx.commit()

        logger.info(
            "%s maintenance recorded for equipment #%s at %sh (record #%s, %d supplies)",
            maintenance_type,
            equipment.id,
            hm_done,
            record.id,
            len(consumed),
        )
        if photos:
            MaintenanceService.attach_photos(record, photos)
        return MaintenanceResult(equipment=equipment, record=record, supplies=supplies)

    @staticmethod
    def attach_photos(record, photos):
        """Best effort: a photo that cannot be stored is logged and dropped.

        Runs after the maintenance commit; nothing raised here reaches the caller.
        """
        limit = current_app.config.get("MAX_MAINTENANCE_PHOTOS", 3)
        upload_root = current_app.config["UPLOAD_DIR"]
        photos = [photo for photo in (photos or []) if isinstance(photo, str)]
        if len(photos) > limit:
            logger.warning("Record #%s: keeping %d of %d photos", record.id, limit, len(photos))

        attached = []
        for data_url in photos[:limit]:
            try:
                path = FileService.save_camera_data_url(data_url, upload_root)
            except AppError as exc:
                logger.warning("Record #%s: dropped photo (%s)", record.id, exc.message)
                continue
            except Exception:
                logger.exception("Record #%s: dropped photo", record.id)
                continue
            if path:
                attached.append(MaintenancePhoto(record_id=record.id, path=path))
        if not attached:
            return []

        tx = Repository(record.account_id).transaction()
        for photo in attached:
            tx.insert(photo)
        try:
            tx.commit()
        except TransactionConflict as exc:
            logger.warning("Record #%s: photos not saved (%s)", record.id, exc.message)
            return []
        except Exception:
            logger.exception("Record #%s: photos not saved", record.id)
            return []
        return attached

    @staticmethod
    def list_history(account_id, maintenance_type=None, equipment_id=None, limit=None):
        query = Repository(account_id).query("maintenance_history")
        if maintenance_type:
            query = query.filter(
                MaintenanceRecord.maintenance_type == MaintenanceService._normalize_type(maintenance_type)
            )
        if equipment_id is not None:
            query = query.filter(MaintenanceRecord.equipment_id == equipment_id)
        return (
            query.order_by(MaintenanceRecord.created_at.desc(), MaintenanceRecord.id.desc())
            .limit(limit or MaintenanceService.HISTORY_LIMIT)
            .all()
        )
