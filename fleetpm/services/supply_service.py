from fleetpm.errors import ValidationError
from fleetpm.models import Supply
from fleetpm.repository import Repository
from fleetpm.services.validators import clean_text, parse_int


class SupplyService:
    DEFAULT_UNIT = "Units"

    @staticmethod
    def create_supply(account_id, payload):
        name = clean_text(payload.get("name"))
        if not name:
            raise ValidationError("Supply name is required.")
        supply = Supply(
            account_id=account_id,
            name=name,
            stock=parse_int(payload.get("stock", 0), "Stock", minimum=0),
            unit=clean_text(payload.get("unit")) or SupplyService.DEFAULT_UNIT,
        )
        tx = Repository(account_id).transaction()
        tx.insert(supply)
        tx.commit()
        return supply

    @staticmethod
    def update_supply(account_id, supply_id, payload):
        repo = Repository(account_id)
        supply = repo.get("supplies", supply_id)
        fields = {}
        if "name" in payload:
            fields["name"] = clean_text(payload.get("name"))
            if not fields["name"]:
                raise ValidationError("Supply name is required.")
        if "unit" in payload:
            fields["unit"] = clean_text(payload.get("unit")) or SupplyService.DEFAULT_UNIT
        if "stock" in payload:
            fields["stock"] = parse_int(payload.get("stock"), "Stock", minimum=0)
        if fields:
            tx = repo.transaction()
            tx.update(supply, **fields)
            tx.commit()
        return supply

    @staticmethod
    def restock(account_id, supply_id, qty):
        repo = Repository(account_id)
        supply = repo.get("supplies", supply_id)
        qty = parse_int(qty, "Restock quantity", minimum=1)
        tx = repo.transaction()
        tx.update(supply, stock=supply.stock + qty)
        tx.commit()
        return supply

    @staticmethod
    def delete_supply(account_id, supply_id):
        repo = Repository(account_id)
        supply = repo.get("supplies", supply_id)
        tx = repo.transaction()
        tx.delete(supply)
        tx.commit()

    @staticmethod
    def list_supplies(account_id, search=None):
        repo = Repository(account_id)
        query = repo.query("supplies")
        term = (search or "").strip()
        if term:
            query = query.filter(Supply.name.ilike(f"%{term}%"))
        return query.order_by(Supply.name.asc()).all()
