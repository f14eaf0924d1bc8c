from fleetpm.extensions import db
from fleetpm.models.base import AccountScopedMixin, PKType, TimestampMixin


class PmKitConfig(AccountScopedMixin, TimestampMixin, db.Model):
    __tablename__ = "pm_kits"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    pm_type = db.Column(db.String(8), nullable=False)
    # Ordered list of {"supply_id", "name", "qty", "mandatory"}; duplicates allowed.
    items = db.Column(db.JSON, nullable=False, default=list)

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (db.UniqueConstraint("account_id", "pm_type", name="uq_pm_kit_account_type"),)

    def to_dict(self):
        return {
            "id": self.id,
            "pm_type": self.pm_type,
            "items": list(self.items or []),
            "version": self.version,
        }
