from fleetpm.extensions import db
from fleetpm.models.base import PKType, TimestampMixin


class MaintenancePhoto(TimestampMixin, db.Model):
    __tablename__ = "maintenance_photos"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    record_id = db.Column(
        PKType, db.ForeignKey("maintenance_records.id", ondelete="CASCADE"), nullable=False, index=True
    )
    path = db.Column(db.String(500), nullable=False)

    record = db.relationship("MaintenanceRecord", back_populates="photos")
