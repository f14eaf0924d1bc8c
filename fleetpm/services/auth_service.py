import re
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from fleetpm.decorators import ADMIN, ROLES
from fleetpm.errors import AppError
from fleetpm.extensions import bcrypt, db
from fleetpm.models import Account, User


class AuthService:
    @staticmethod
    def _normalize_username(username):
        normalized = username.strip().lower() if isinstance(username, str) else ""
        if not re.fullmatch(r"[a-z0-9_.-]{3,80}", normalized):
            raise AppError("Username must be 3-80 characters: letters, digits, dot, dash or underscore.", 400)
        return normalized

    @staticmethod
    def _create_user(account, username, password, role):
        if role not in ROLES:
            raise AppError("Invalid role.", 400)
        if not isinstance(password, str) or len(password) < 6:
            raise AppError("Password must be at least 6 characters.", 400)

        normalized = AuthService._normalize_username(username)
        if User.query.filter_by(username=normalized).first():
            raise AppError("Username already registered.", 409)

        user = User(
            account=account,
            username=normalized,
            role=role,
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
        )
        db.session.add(user)
        return user

    @staticmethod
    def register_account(account_name, username, password):
        name = account_name.strip() if isinstance(account_name, str) else ""
        if not name:
            raise AppError("Account name is required.", 400)

        account = Account(name=name)
        db.session.add(account)
        user = AuthService._create_user(account, username, password, ADMIN)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AppError("Username already registered.", 409) from exc
        return user

    @staticmethod
    def add_user(account_id, username, password, role):
        account = db.session.get(Account, account_id)
        if not account:
            raise AppError("Account not found.", 404)
        role = role.strip().lower() if isinstance(role, str) else ""
        user = AuthService._create_user(account, username, password, role)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise AppError("Username already registered.", 409) from exc
        return user

    @staticmethod
    def list_users(account_id):
        return User.query.filter_by(account_id=account_id).order_by(User.username.asc()).all()

    @staticmethod
    def authenticate_user(username, password):
        username = username.strip().lower() if isinstance(username, str) else ""
        user = User.query.filter_by(username=username).first()
        if not user:
            raise AppError("Invalid credentials.", 401)

        if not isinstance(password, str):
            password = ""
        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password)
        except ValueError:
            is_valid = False
        if not is_valid:
            raise AppError("Invalid credentials.", 401)
        if not user.is_active_user:
            raise AppError("User account is inactive.", 403)

        user.last_login = datetime.now(timezone.utc)
        db.session.commit()
        return user
