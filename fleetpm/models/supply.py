from fleetpm.extensions import db
from fleetpm.models.base import AccountScopedMixin, PKType, TimestampMixin


class Supply(AccountScopedMixin, TimestampMixin, db.Model):
    __tablename__ = "supplies"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(140), nullable=False, index=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="Units")

    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (db.CheckConstraint("stock >= 0", name="ck_supply_stock_non_negative"),)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "stock": self.stock,
            "unit": self.unit,
            "version": self.version,
        }
