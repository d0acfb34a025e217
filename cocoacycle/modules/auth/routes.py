from __future__ import annotations

from flask import Blueprint

from cocoacycle.app.backend import auth as auth_backend
from cocoacycle.app.common.auth import current_user, login_required
from cocoacycle.app.common.errors import abort_json, validation_error
from cocoacycle.app.common.serializers import profile_to_dict
from cocoacycle.app.common.validation import get_json, require_fields, validate_profile_payload

bp = Blueprint("auth", __name__)


def _credentials(data):
    for field in ("email", "password"):
        if not isinstance(data[field], str):
            validation_error(f"{field} must be a string", field=field)
    return data["email"], data["password"]


@bp.post("/auth/signup")
def signup():
    """POST /api/auth/signup - Create an account (does not sign in)."""
    data = get_json()
    require_fields(data, ["email", "password"])

    email, password = _credentials(data)
    profile_data = validate_profile_payload(data)
    result = auth_backend.sign_up(email, password, profile_data)
    if not result.ok:
        status, code = (409, "conflict") if result.error == "User already registered" else (400, "validation_error")
        abort_json(status, code, result.error)

    return profile_to_dict(result.user), 201


@bp.post("/auth/login")
def login():
    """POST /api/auth/login - Authenticate and start a session."""
    data = get_json()
    require_fields(data, ["email", "password"])

    result = auth_backend.sign_in(*_credentials(data))
    if not result.ok:
        if result.error == auth_backend.INVALID_CREDENTIALS:
            abort_json(401, "unauthorized", result.error)
        abort_json(500, "internal_error", result.error)

    return {"message": "logged_in", "user": profile_to_dict(result.user)}, 200


@bp.post("/auth/logout")
def logout():
    """POST /api/auth/logout - Terminate session."""
    auth_backend.sign_out()
    return {"message": "logged_out"}, 200


@bp.get("/users/me")
@login_required
def me():
    """GET /api/users/me - Current authenticated user."""
    return profile_to_dict(current_user()), 200


@bp.patch("/users/me")
@login_required
def update_me():
    """PATCH /api/users/me - Update display name, WhatsApp and address."""
    values = validate_profile_payload(get_json())
    result = auth_backend.update_user_details(current_user().id, values)
    if not result.ok:
        abort_json(500, "internal_error", result.error)
    return profile_to_dict(result.user), 200
