from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, NoReturn, Optional


@dataclass
class ApiError(Exception):
    """Raise to return a consistent JSON error response."""

    status_code: int
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self, request_id: str | None = None) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details or {},
                "request_id": request_id,
            }
        }


def abort_json(status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> NoReturn:
    """Convenience wrapper."""
    raise ApiError(status_code=status_code, code=code, message=message, details=details)


def not_found(resource: str) -> NoReturn:
    abort_json(404, "not_found", f"{resource} not found")


def validation_error(message: str, **details: Any) -> NoReturn:
    abort_json(400, "validation_error", message, details or None)


def conflict(message: str, **details: Any) -> NoReturn:
    abort_json(409, "conflict", message, details or None)
