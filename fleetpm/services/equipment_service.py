import logging

from fleetpm.errors import AlreadyActive, InvalidFuelLevel, InvalidHourMeter, TransactionConflict, ValidationError
from fleetpm.models import Equipment
from fleetpm.pm_cycle import PM_INTERVAL, PM_SEQUENCE, recommend_index
from fleetpm.repository import Repository
from fleetpm.services.validators import clean_text, parse_int, parse_version

logger = logging.getLogger(__name__)


class EquipmentService:
    @staticmethod
    def _schedule_from(hm, sequence_index):
        if sequence_index is None or sequence_index == "":
            index = recommend_index(hm)
        else:
            index = parse_int(sequence_index, "Sequence index", minimum=0, maximum=len(PM_SEQUENCE) - 1)
        return {
            "sequence_index": index,
            "next_pm_type": PM_SEQUENCE[index],
            "next_pm_due_hm": hm + PM_INTERVAL,
            "last_pm_hm": hm,
        }

    @staticmethod
    def _check_version(equipment, expected_version):
        expected_version = parse_version(expected_version)
        if expected_version is not None and expected_version != equipment.version:
            raise TransactionConflict("Equipment was modified by someone else. Reload and try again.")

    @staticmethod
    def register(account_id, payload):
        name = clean_text(payload.get("name"))
        if not name:
            raise ValidationError("Equipment name is required.")
        hm = parse_int(payload.get("current_hm"), "Hour-meter", InvalidHourMeter, minimum=0)
        fuel = parse_int(payload.get("fuel_level", 100), "Fuel level", InvalidFuelLevel, minimum=0, maximum=100)

        equipment = Equipment(
            account_id=account_id,
            name=name,
            model=clean_text(payload.get("model")),
            plate=clean_text(payload.get("plate")),
            series=clean_text(payload.get("series")),
            current_hm=hm,
            fuel_level=fuel,
            last_pm_type=None,
            in_use=False,
            **EquipmentService._schedule_from(hm, payload.get("sequence_index")),
        )
        tx = Repository(account_id).transaction()
        tx.insert(equipment)
        tx.commit()
        logger.info(
            "Registered equipment #%s at %sh, next %s due at %sh",
            equipment.id,
            hm,
            equipment.next_pm_type,
            equipment.next_pm_due_hm,
        )
        return equipment

    @staticmethod
    def update(account_id, equipment_id, payload):
        repo = Repository(account_id)
        equipment = repo.get("equipment", equipment_id, for_update=True)
        EquipmentService._check_version(equipment, payload.get("version"))
        if equipment.in_use:
            raise AlreadyActive("Equipment is in operation and cannot be edited.")

        fields = {}
        for key in ("name", "model", "plate", "series"):
            if key in payload:
                fields[key] = clean_text(payload.get(key))
        if "name" in fields and not fields["name"]:
            raise ValidationError("Equipment name is required.")
        if "fuel_level" in payload:
            fields["fuel_level"] = parse_int(
                payload["fuel_level"], "Fuel level", InvalidFuelLevel, minimum=0, maximum=100
            )

        hm = equipment.current_hm
        if "current_hm" in payload:
            hm = parse_int(payload["current_hm"], "Hour-meter", InvalidHourMeter, minimum=0)
            if hm < equipment.current_hm:
                raise InvalidHourMeter(
                    f"Hour-meter cannot go back from {equipment.current_hm}h to {hm}h."
                )
        # Editing the meter outside a maintenance re-bases the PM schedule.
        if hm != equipment.current_hm or "sequence_index" in payload:
            fields["current_hm"] = hm
            fields.update(EquipmentService._schedule_from(hm, payload.get("sequence_index")))

        if not fields:
            return equipment
        tx = repo.transaction()
        tx.update(equipment, **fields)
        tx.commit()
        return equipment

    @staticmethod
    def refuel(account_id, equipment_id, fuel_level, expected_version=None):
        repo = Repository(account_id)
        equipment = repo.get("equipment", equipment_id, for_update=True)
        EquipmentService._check_version(equipment, expected_version)
        level = parse_int(fuel_level, "Fuel level", InvalidFuelLevel, minimum=0, maximum=100)
        if level <= equipment.fuel_level:
            raise InvalidFuelLevel("Refuel level must be higher than the current fuel level.")

        tx = repo.transaction()
        tx.update(equipment, fuel_level=level)
        tx.commit()
        return equipment

    @staticmethod
    def delete(account_id, equipment_id):
        repo = Repository(account_id)
        equipment = repo.get("equipment", equipment_id, for_update=True)
        if equipment.in_use:
            raise AlreadyActive("Equipment is in operation and cannot be removed.")
        tx = repo.transaction()
        tx.delete(equipment)
        tx.commit()
        logger.info("Removed equipment #%s from account %s", equipment_id, account_id)

    @staticmethod
    def list_equipment(account_id):
        return Repository(account_id).list("equipment")
