"""Authentication provider shim.

Mirrors the hosted auth API the storefront was designed against: every call
returns an ``AuthResult`` instead of raising, so callers decide how to surface
the failure. Credentials live in ``auth_users``; the app-facing profile lives in
``profiles`` and is created lazily from the sign-up metadata.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from flask import current_app, session
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from cocoacycle.app.common.validation import EMAIL_REGEX
from cocoacycle.app.extensions import db
from cocoacycle.app.models import AuthUser, Profile

logger = logging.getLogger(__name__)

SESSION_KEY = "user_id"
INVALID_CREDENTIALS = "Invalid login credentials"

ADDRESS_KEYS = (
    "address_street",
    "address_number",
    "address_complement",
    "address_neighborhood",
    "address_city",
    "address_state",
    "address_zip",
)
UPDATABLE_KEYS = ("display_name", "whatsapp") + ADDRESS_KEYS


@dataclass
class AuthResult:
    user: Optional[Profile] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _default_display_name(email: str) -> str:
    return email.split("@")[0] or "Usuário"


def sign_up(email: str, password: str, profile_data: Optional[Dict[str, Any]] = None) -> AuthResult:
    email = (email or "").strip().lower()
    profile_data = profile_data or {}

    if not EMAIL_REGEX.match(email):
        return AuthResult(error="Invalid email format")
    min_len = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password or "") < min_len:
        return AuthResult(error=f"Password should be at least {min_len} characters")
    if AuthUser.query.filter_by(email=email).first():
        return AuthResult(error="User already registered")

    metadata: Dict[str, Any] = {
        "display_name": profile_data.get("display_name") or _default_display_name(email),
        "whatsapp": profile_data.get("whatsapp") or "",
        "is_admin": False,
    }
    for key in ADDRESS_KEYS:
        if profile_data.get(key):
            metadata[key] = profile_data[key]

    auth_user = AuthUser(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=generate_password_hash(password),
        user_metadata=metadata,
    )
    try:
        db.session.add(auth_user)
        db.session.flush()
        profile = _profile_from_metadata(auth_user)
        db.session.add(profile)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("sign_up failed for %s: %s", email, exc)
        return AuthResult(error="Unable to create account, please try again")

    logger.info("New account %s (%s)", auth_user.id, email)
    return AuthResult(user=profile)


def sign_in(email: str, password: str) -> AuthResult:
    email = (email or "").strip().lower()
    auth_user = AuthUser.query.filter_by(email=email).first()
    if not auth_user or not check_password_hash(auth_user.password_hash, password or ""):
        return AuthResult(error=INVALID_CREDENTIALS)

    session[SESSION_KEY] = auth_user.id
    result = get_user()
    if result.user is None:
        session.pop(SESSION_KEY, None)
        return AuthResult(error=f"Failed to retrieve or create profile after sign in: {result.error}")
    return AuthResult(user=result.user)


def sign_out() -> AuthResult:
    session.pop(SESSION_KEY, None)
    return AuthResult()


def get_user() -> AuthResult:
    """Resolve the session user to a profile, creating the profile if missing."""
    uid = session.get(SESSION_KEY)
    if not uid:
        return AuthResult()

    auth_user = db.session.get(AuthUser, uid)
    if not auth_user:
        # Stale cookie (account deleted); drop it.
        session.pop(SESSION_KEY, None)
        return AuthResult(error="Auth session missing")

    profile = db.session.get(Profile, auth_user.id)
    if profile:
        return AuthResult(user=profile)

    logger.warning("Profile not found for user %s, creating from auth metadata", auth_user.id)
    profile = _profile_from_metadata(auth_user)
    try:
        db.session.add(profile)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to create profile for %s: %s", auth_user.id, exc)
        return AuthResult(error=f"Profile creation failed: {exc}")
    return AuthResult(user=profile)


# The storefront calls it by this name.
get_current_user = get_user


def check_admin_role() -> bool:
    user = get_user().user
    return bool(user and user.is_admin)


def update_user_details(user_id: str, data: Dict[str, Any]) -> AuthResult:
    profile = db.session.get(Profile, user_id)
    if not profile:
        return AuthResult(error="Profile not found")

    payload = {k: v for k, v in data.items() if k in UPDATABLE_KEYS}
    if not payload:
        return AuthResult(user=profile)

    if payload.get("address_state"):
        payload["address_state"] = payload["address_state"].upper()

    for key, value in payload.items():
        setattr(profile, key, value)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Error updating user details for %s: %s", user_id, exc)
        return AuthResult(error="Unable to save user details")

    logger.info("User details updated for %s", user_id)
    return AuthResult(user=profile)


def _profile_from_metadata(auth_user: AuthUser) -> Profile:
    meta = auth_user.user_metadata or {}
    profile = Profile(
        id=auth_user.id,
        email=auth_user.email,
        display_name=meta.get("display_name") or _default_display_name(auth_user.email),
        whatsapp=meta.get("whatsapp") or "",
        is_admin=meta.get("is_admin") is True,
        created_at=auth_user.created_at,
    )
    for key in ADDRESS_KEYS:
        setattr(profile, key, meta.get(key) or None)
    return profile
