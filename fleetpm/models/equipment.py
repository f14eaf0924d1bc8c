from fleetpm.extensions import db
from fleetpm.models.base import AccountScopedMixin, PKType, TimestampMixin


class Equipment(AccountScopedMixin, TimestampMixin, db.Model):
    __tablename__ = "equipment"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(140), nullable=False)
    model = db.Column(db.String(80), nullable=True)
    plate = db.Column(db.String(32), nullable=True, index=True)
    series = db.Column(db.String(64), nullable=True)

    current_hm = db.Column(db.Integer, nullable=False, default=0)
    fuel_level = db.Column(db.Integer, nullable=False, default=100)
    next_pm_type = db.Column(db.String(8), nullable=False)
    next_pm_due_hm = db.Column(db.Integer, nullable=False)
    last_pm_type = db.Column(db.String(8), nullable=True)
    last_pm_hm = db.Column(db.Integer, nullable=False, default=0)
    sequence_index = db.Column(db.SmallInteger, nullable=False, default=0)
    in_use = db.Column(db.Boolean, nullable=False, default=False, index=True)

    version = db.Column(db.Integer, nullable=False)

    maintenance_records = db.relationship(
        "MaintenanceRecord", back_populates="equipment", lazy="dynamic", passive_deletes=True
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        db.CheckConstraint("current_hm >= 0", name="ck_equipment_hm_non_negative"),
        db.CheckConstraint("fuel_level >= 0 AND fuel_level <= 100", name="ck_equipment_fuel_range"),
        db.CheckConstraint("sequence_index >= 0 AND sequence_index <= 7", name="ck_equipment_sequence_range"),
    )

    @property
    def hours_to_due(self):
        return self.next_pm_due_hm - self.current_hm

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "model": self.model,
            "plate": self.plate,
            "series": self.series,
            "current_hm": self.current_hm,
            "fuel_level": self.fuel_level,
            "next_pm_type": self.next_pm_type,
            "next_pm_due_hm": self.next_pm_due_hm,
            "hours_to_due": self.hours_to_due,
            "last_pm_type": self.last_pm_type,
            "last_pm_hm": self.last_pm_hm,
            "sequence_index": self.sequence_index,
            "in_use": self.in_use,
            "version": self.version,
        }
