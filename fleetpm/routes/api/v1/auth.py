from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from fleetpm.decorators import ADMIN, role_required
from fleetpm.extensions import limiter
from fleetpm.services import AuthService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/register")
@limiter.limit("10 per hour")
def api_register():
    payload = request.get_json(silent=True) or {}
    user = AuthService.register_account(
        account_name=payload.get("account_name", ""),
        username=payload.get("username", ""),
        password=payload.get("password", ""),
    )
    login_user(user)
    return jsonify(user.to_dict()), 201


@api_auth_bp.post("/login")
@limiter.limit("20 per minute")
def api_login():
    payload = request.get_json(silent=True) or {}
    user = AuthService.authenticate_user(payload.get("username", ""), payload.get("password", ""))
    login_user(user)
    return jsonify(user.to_dict())


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_auth_bp.get("/me")
@login_required
def api_me():
    return jsonify(current_user.to_dict())


@api_auth_bp.get("/users")
@login_required
@role_required(ADMIN)
def list_users():
    return jsonify([user.to_dict() for user in AuthService.list_users(current_user.account_id)])


@api_auth_bp.post("/users")
@login_required
@role_required(ADMIN)
def add_user():
    payload = request.get_json(silent=True) or {}
    user = AuthService.add_user(
        account_id=current_user.account_id,
        username=payload.get("username", ""),
        password=payload.get("password", ""),
        role=payload.get("role", ""),
    )
    return jsonify(user.to_dict()), 201
