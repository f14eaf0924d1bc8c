from fleetpm.errors import IndexOutOfRange, ValidationError
from fleetpm.models import PmKitConfig
from fleetpm.pm_cycle import PM_TYPES
from fleetpm.repository import Repository
from fleetpm.services.validators import parse_int


class KitService:
    @staticmethod
    def _check_pm_type(pm_type):
        normalized = pm_type.strip().upper() if isinstance(pm_type, str) else None
        if normalized not in PM_TYPES:
            raise ValidationError(f"Invalid PM type: {pm_type}.")
        return normalized

    @staticmethod
    def _config(account_id, pm_type):
        return PmKitConfig.query.filter_by(account_id=account_id, pm_type=pm_type).first()

    @staticmethod
    def items_for(account_id, pm_type):
        config = KitService._config(account_id, KitService._check_pm_type(pm_type))
        return list(config.items or []) if config else []

    @staticmethod
    def all_kits(account_id):
        return {pm_type: KitService.items_for(account_id, pm_type) for pm_type in PM_TYPES}

    @staticmethod
    def add_item(account_id, pm_type, supply_id, qty, mandatory=True):
        pm_type = KitService._check_pm_type(pm_type)
        repo = Repository(account_id)
        supply = repo.get("supplies", parse_int(supply_id, "Supply id"))
        item = {
            "supply_id": supply.id,
            "name": supply.name,
            "qty": parse_int(qty, "Quantity", minimum=1),
            "mandatory": bool(mandatory),
        }

        tx = repo.transaction()
        config = KitService._config(account_id, pm_type)
        if config:
            tx.update(config, items=[*(config.items or []), item])
        else:
            config = tx.insert(PmKitConfig(account_id=account_id, pm_type=pm_type, items=[item]))
        tx.commit()
        return list(config.items)

    @staticmethod
    def remove_item(account_id, pm_type, index):
        pm_type = KitService._check_pm_type(pm_type)
        config = KitService._config(account_id, pm_type)
        items = list(config.items or []) if config else []
        try:
            position = int(index)
        except (TypeError, ValueError) as exc:
            raise IndexOutOfRange(f"Invalid kit position: {index}.") from exc
        if position < 0 or position >= len(items):
            raise IndexOutOfRange(f"Kit {pm_type} has no item at position {position}.")

        removed = items.pop(position)
        tx = Repository(account_id).transaction()
        tx.update(config, items=items)
        tx.commit()
        return removed
