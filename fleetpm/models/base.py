from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declared_attr

from fleetpm.extensions import db


# Use BIGINT in PostgreSQL, but INTEGER in SQLite so autoincrement works.
PKType = BigInteger().with_variant(Integer, "sqlite")


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value):
    value = as_utc(value)
    return value.isoformat() if value else None


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class AccountScopedMixin:
    @declared_attr
    def account_id(cls):
        return db.Column(PKType, db.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
