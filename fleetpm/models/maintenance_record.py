from fleetpm.extensions import db
from fleetpm.models.base import AccountScopedMixin, PKType, TimestampMixin, isoformat

SCHEDULED = "Scheduled"
CORRECTIVE = "Corrective"
MAINTENANCE_TYPES = (SCHEDULED, CORRECTIVE)


class MaintenanceRecord(AccountScopedMixin, TimestampMixin, db.Model):
    __tablename__ = "maintenance_records"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    equipment_id = db.Column(PKType, db.ForeignKey("equipment.id", ondelete="SET NULL"), nullable=True, index=True)
    equipment_name = db.Column(db.String(140), nullable=False)
    maintenance_type = db.Column(db.String(16), nullable=False, index=True)
    pm_type = db.Column(db.String(8), nullable=True)
    description = db.Column(db.Text, nullable=True)
    hm_done_at = db.Column(db.Integer, nullable=False)
    fuel_level = db.Column(db.Integer, nullable=False)
    supplies_consumed = db.Column(db.JSON, nullable=False, default=list)
    performed_by = db.Column(db.String(80), nullable=True)

    equipment = db.relationship("Equipment", back_populates="maintenance_records")
    photos = db.relationship("MaintenancePhoto", back_populates="record", lazy="selectin")

    __table_args__ = (db.Index("ix_maintenance_account_created", "account_id", "created_at"),)

    def to_dict(self):
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "type": self.maintenance_type,
            "pm_type": self.pm_type,
            "description": self.description,
            "hm_done_at": self.hm_done_at,
            "fuel_level": self.fuel_level,
            "supplies_consumed": list(self.supplies_consumed or []),
            "performed_by": self.performed_by,
            "photos": [photo.path for photo in self.photos],
            "timestamp": isoformat(self.created_at),
        }
