from fleetpm.extensions import db
from fleetpm.models.base import PKType, TimestampMixin


class Account(TimestampMixin, db.Model):
    __tablename__ = "accounts"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(140), nullable=False)

    users = db.relationship("User", back_populates="account", lazy="dynamic")
