"""Session-based route guards.

The signed-in user id lives in the Flask session (see ``backend.auth``); the
guards resolve it to a profile and keep it on ``g.current_user``.
"""

from functools import wraps
from typing import Any, Callable, TypeVar

from flask import g

from cocoacycle.app.backend import auth as auth_backend
from cocoacycle.app.common.errors import abort_json

F = TypeVar("F", bound=Callable[..., Any])


def _load_user():
    result = auth_backend.get_current_user()
    if result.user is None:
        abort_json(401, "unauthorized", result.error or "Authentication required")
    g.current_user = result.user
    return result.user


def login_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        _load_user()
        return fn(*args, **kwargs)

    return wrapper  # type: ignore


def admin_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = _load_user()
        if not user.is_admin:
            abort_json(403, "forbidden", "Admin access required")
        return fn(*args, **kwargs)

    return wrapper  # type: ignore


def current_user():
    return g.current_user
