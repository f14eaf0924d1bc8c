from fleetpm.extensions import db
from fleetpm.models.base import AccountScopedMixin, PKType, TimestampMixin, isoformat


class UsageSession(AccountScopedMixin, TimestampMixin, db.Model):
    """An open operating session. At most one per operator and one per machine."""

    __tablename__ = "usage_sessions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    equipment_id = db.Column(
        PKType, db.ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    operator_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    operator = db.Column(db.String(80), nullable=False)
    start_hm = db.Column(db.Integer, nullable=False)
    start_fuel = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)

    equipment = db.relationship("Equipment")

    __table_args__ = (db.UniqueConstraint("account_id", "operator_id", name="uq_usage_session_operator"),)

    def to_dict(self):
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment.name if self.equipment else None,
            "operator": self.operator,
            "start_hm": self.start_hm,
            "start_fuel": self.start_fuel,
            "start_time": isoformat(self.start_time),
        }


class UsageRecord(AccountScopedMixin, TimestampMixin, db.Model):
    __tablename__ = "usage_records"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    equipment_id = db.Column(PKType, db.ForeignKey("equipment.id", ondelete="SET NULL"), nullable=True, index=True)
    equipment_name = db.Column(db.String(140), nullable=False)
    operator = db.Column(db.String(80), nullable=False)
    start_hm = db.Column(db.Integer, nullable=False)
    end_hm = db.Column(db.Integer, nullable=False)
    start_fuel = db.Column(db.Integer, nullable=False)
    end_fuel = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    duration_ms = db.Column(db.BigInteger, nullable=False)
    hours_added = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.CheckConstraint("end_hm >= start_hm", name="ck_usage_hm_monotonic"),
        db.Index("ix_usage_account_end_time", "account_id", "end_time"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "operator": self.operator,
            "start_hm": self.start_hm,
            "end_hm": self.end_hm,
            "start_fuel": self.start_fuel,
            "end_fuel": self.end_fuel,
            "start_time": isoformat(self.start_time),
            "end_time": isoformat(self.end_time),
            "duration_ms": self.duration_ms,
            "hours_added": self.hours_added,
        }
