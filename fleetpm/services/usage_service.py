import logging

from fleetpm.errors import (
    AlreadyActive,
    ConfirmationRequired,
    InvalidFuelLevel,
    InvalidHourMeter,
    MaintenanceOverdue,
    NotFound,
    TransactionConflict,
)
from fleetpm.models import UsageRecord, UsageSession
from fleetpm.models.base import as_utc, utcnow
from fleetpm.pm_cycle import BLOCK_TOLERANCE, HIGH_FUEL_CONSUMPTION, is_blocked
from fleetpm.repository import Repository
from fleetpm.services.validators import parse_int, parse_version

logger = logging.getLogger(__name__)


class UsageService:
    """Operating sessions, keyed by operator: Idle -> Active -> Idle."""

    HISTORY_LIMIT = 50

    @staticmethod
    def active_for(account_id, operator_id):
        return UsageSession.query.filter_by(account_id=account_id, operator_id=operator_id).first()

    @staticmethod
    def list_active(account_id):
        return Repository(account_id).list("usage_sessions")

    @staticmethod
    def start(account_id, equipment_id, operator):
        if UsageService.active_for(account_id, operator.id):
            raise AlreadyActive("Operator already has an active session.")

        repo = Repository(account_id)
        equipment = repo.get("equipment", equipment_id, for_update=True)
        if equipment.in_use:
            raise AlreadyActive(f"{equipment.name} is already in operation.")
        if is_blocked(equipment.current_hm, equipment.next_pm_due_hm):
            raise MaintenanceOverdue(
                f"Blocked: {equipment.next_pm_type} overdue by more than {BLOCK_TOLERANCE}h. "
                "Perform maintenance first."
            )

        session = UsageSession(
            account_id=account_id,
            equipment_id=equipment.id,
            operator_id=operator.id,
            operator=operator.username,
            start_hm=equipment.current_hm,
            start_fuel=equipment.fuel_level,
            start_time=utcnow(),
        )
        tx = repo.transaction()
        tx.update(equipment, in_use=True)
        tx.insert(session)
        tx.commit()
        logger.info("%s started equipment #%s at %sh", operator.username, equipment.id, session.start_hm)
        return session

    @staticmethod
    def end(account_id, operator_id, end_hm, end_fuel, confirm_high_consumption=False, expected_version=None):
        session = UsageService.active_for(account_id, operator_id)
        if session is None:
            raise NotFound("No active session for this operator.")

        repo = Repository(account_id)
        equipment = repo.get("equipment", session.equipment_id, for_update=True)
        expected_version = parse_version(expected_version)
        if expected_version is not None and expected_version != equipment.version:
            raise TransactionConflict("Equipment was modified by someone else. Reload and try again.")

        end_hm = parse_int(end_hm, "End hour-meter", InvalidHourMeter)
        if end_hm < session.start_hm:
            raise InvalidHourMeter(f"End hour-meter {end_hm}h is below the start reading of {session.start_hm}h.")
        if end_hm < equipment.current_hm:
            raise InvalidHourMeter(f"End hour-meter {end_hm}h is below the current reading of {equipment.current_hm}h.")
        end_fuel = parse_int(end_fuel, "End fuel level", InvalidFuelLevel, minimum=0, maximum=100)
        if session.start_fuel - end_fuel > HIGH_FUEL_CONSUMPTION and not confirm_high_consumption:
            raise ConfirmationRequired(
                f"Fuel consumption looks high (more than {HIGH_FUEL_CONSUMPTION}% in one session). "
                "Confirm to proceed."
            )

        end_time = utcnow()
        start_time = as_utc(session.start_time)
        duration_ms = max(0, int((end_time - start_time).total_seconds() * 1000))
        record = UsageRecord(
            account_id=account_id,
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            operator=session.operator,
            start_hm=session.start_hm,
            end_hm=end_hm,
            start_fuel=session.start_fuel,
            end_fuel=end_fuel,
            start_time=start_time,
            end_time=end_time,
            duration_ms=duration_ms,
            hours_added=end_hm - session.start_hm,
        )

        tx = repo.transaction()
        tx.update(equipment, in_use=False, current_hm=end_hm, fuel_level=end_fuel)
        tx.insert(record)
        tx.delete(session)
        tx.commit()
        logger.info(
            "%s ended equipment #%s at %sh (+%sh)", record.operator, equipment.id, end_hm, record.hours_added
        )
        return record

    @staticmethod
    def list_history(account_id, equipment_id=None, limit=None):
        query = Repository(account_id).query("usage_history")
        if equipment_id is not None:
            query = query.filter(UsageRecord.equipment_id == equipment_id)
        return (
            query.order_by(UsageRecord.end_time.desc(), UsageRecord.id.desc())
            .limit(limit or UsageService.HISTORY_LIMIT)
            .all()
        )
