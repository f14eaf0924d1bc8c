"""
Account-scoped persistence for the fleet collections.

Every read and write goes through a :class:`Repository` bound to one account
partition. Multi-record writes are staged on a :class:`Transaction` and land in
a single database commit; subscribers of the touched collections receive a
fresh snapshot once that commit succeeds.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from fleetpm.errors import InsufficientStock, NotFound, TransactionConflict, ValidationError
from fleetpm.extensions import db, feed
from fleetpm.models import (
    Equipment,
    MaintenancePhoto,
    MaintenanceRecord,
    PmKitConfig,
    Supply,
    UsageRecord,
    UsageSession,
)

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "equipment": Equipment,
    "supplies": Supply,
    "pm_kits": PmKitConfig,
    "maintenance_history": MaintenanceRecord,
    "usage_sessions": UsageSession,
    "usage_history": UsageRecord,
}

NEWEST_FIRST = {"maintenance_history", "usage_history"}

LABELS = {
    "equipment": "Equipment",
    "supplies": "Supply",
    "pm_kits": "Kit",
    "maintenance_history": "Maintenance record",
    "usage_sessions": "Usage session",
    "usage_history": "Usage record",
}


def collection_of(obj):
    if isinstance(obj, MaintenancePhoto):
        return "maintenance_history"
    for name, model in COLLECTIONS.items():
        if isinstance(obj, model):
            return name
    raise ValidationError(f"{type(obj).__name__} does not belong to a collection.")


class Transaction:
    """Stages writes across collections and commits them as one unit."""

    def __init__(self, account_id):
        self.account_id = account_id
        self.touched = set()
        self.committed = False
        self._inserts = []
        self._updates = []
        self._deletes = []
        self._decrements = []

    def insert(self, obj):
        if hasattr(obj, "account_id") and obj.account_id is None:
            obj.account_id = self.account_id
        self._inserts.append(obj)
        self.touched.add(collection_of(obj))
        return obj

    def update(self, obj, **fields):
        self._updates.append((obj, fields))
        self.touched.add(collection_of(obj))
        return obj

    def delete(self, obj):
        self._deletes.append(obj)
        self.touched.add(collection_of(obj))
        return obj

    def decrement_stock(self, supply_id, qty):
        """Stage ``stock -= qty``, re-checked against the stored stock at commit time."""
        if qty < 1:
            raise ValidationError("Quantity must be at least 1.")
        self._decrements.append((supply_id, qty))
        self.touched.add("supplies")

    def commit(self):
        if self.committed:
            raise RuntimeError("Transaction already committed.")

        session = db.session
        try:
            for obj, fields in self._updates:
                for key, value in fields.items():
                    setattr(obj, key, value)
            for obj in self._inserts:
                session.add(obj)
            for obj in self._deletes:
                session.delete(obj)
            session.flush()

            for supply_id, qty in self._decrements:
                result = session.execute(
                    update(Supply)
                    .where(
                        Supply.id == supply_id,
                        Supply.account_id == self.account_id,
                        Supply.stock >= qty,
                    )
                    .values(stock=Supply.stock - qty, version=Supply.version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise InsufficientStock(f"Insufficient stock for supply #{supply_id}.")

            session.commit()
        except StaleDataError as exc:
            session.rollback()
            logger.warning("Transaction conflict on account %s: %s", self.account_id, exc)
            raise TransactionConflict("Record was modified concurrently. Reload and try again.") from exc
        except IntegrityError as exc:
            session.rollback()
            logger.warning("Integrity conflict on account %s: %s", self.account_id, exc.orig)
            raise TransactionConflict("Conflicting write rejected. Reload and try again.") from exc
        except Exception:
            session.rollback()
            raise

        self.committed = True
        feed.publish(self.account_id, self.touched)
        return self


class Repository:
    def __init__(self, account_id):
        self.account_id = account_id

    @staticmethod
    def model_for(collection):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ValidationError(f"Unknown collection: {collection}.")
        return model

    def query(self, collection):
        model = self.model_for(collection)
        return model.query.filter(model.account_id == self.account_id)

    def get(self, collection, record_id, for_update=False):
        model = self.model_for(collection)
        stmt = select(model).where(model.id == record_id, model.account_id == self.account_id)
        if for_update:
            stmt = stmt.with_for_update()
        obj = db.session.execute(stmt).scalar_one_or_none()
        if obj is None:
            raise NotFound(f"{LABELS[collection]} #{record_id} not found.")
        return obj

    def list(self, collection, limit=None):
        model = self.model_for(collection)
        order = model.id.desc() if collection in NEWEST_FIRST else model.id.asc()
        query = self.query(collection).order_by(order)
        if limit:
            query = query.limit(limit)
        return query.all()

    def snapshot(self, collection, limit=None):
        return tuple(row.to_dict() for row in self.list(collection, limit=limit))

    def transaction(self):
        return Transaction(self.account_id)

    def create(self, collection, **fields):
        model = self.model_for(collection)
        obj = model(account_id=self.account_id, **fields)
        tx = self.transaction()
        tx.insert(obj)
        tx.commit()
        return obj

    def update(self, collection, record_id, **fields):
        obj = self.get(collection, record_id)
        tx = self.transaction()
        tx.update(obj, **fields)
        tx.commit()
        return obj

    def delete(self, collection, record_id):
        obj = self.get(collection, record_id)
        tx = self.transaction()
        tx.delete(obj)
        tx.commit()
        return obj

    def subscribe(self, collection):
        self.model_for(collection)
        return feed.subscribe(self.account_id, collection, lambda: self.snapshot(collection))
