"""
Identity domain constants and value objects.

Why:
- Centralize allowed roles so the web layer, the route guard and the role
  gate never drift apart.
- Keep the session (IdP-issued) and the profile (application-issued) as two
  separate records: the session says *who* is signed in, the profile says
  *what* they may do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
import time

from .errors import ProfileLoadError

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"admin", "mentor", "student"})

# Dashboards per role; admins live in the admin area.
DASHBOARD_BY_ROLE = {
    "student": "/dashboard/student",
    "mentor": "/dashboard/mentor",
    "admin": "/admin/dashboard",
}


@dataclass(frozen=True)
class Session:
    """Authenticated principal as issued by the identity provider.

    `token` is the opaque, time-limited access token. Refresh and ID tokens
    stay on the record for the adapter's own use and are hidden from repr.
    """

    uid: str
    email: str
    display_name: str
    token: str
    expires_at: int
    refresh_token: Optional[str] = field(default=None, repr=False)
    id_token: Optional[str] = field(default=None, repr=False)

    def is_expired(self, now: Optional[float] = None) -> bool:
        current = time.time() if now is None else now
        return self.expires_at <= current


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ProfileLoadError("malformed_timestamp") from exc
    raise ProfileLoadError("malformed_timestamp")


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ProfileLoadError("malformed_profile")

@dataclass(frozen=True)
class UserProfile:
    """Application-level record keyed by the session uid.

    The client only caches this record; the backend owns it.
    """

    uid: str
    email: str
    role: str
    completed: bool = False
    display_name: str = ""
    created_at: Optional[datetime] = None
    last_active: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserProfile":
        """Parse a backend JSON object (camelCase or snake_case keys).

        Raises ProfileLoadError when required keys are missing or the role is
        not one of ALLOWED_ROLES, or the completed flag is neither a
        bool nor "true"/"false".
        """
        if not isinstance(data, Mapping):
            raise ProfileLoadError("malformed_profile")
        uid = data.get("uid") or data.get("id")
        if not uid:
            raise ProfileLoadError("missing_uid")
        role = str(data.get("role") or "").lower()
        if role not in ALLOWED_ROLES:
            raise ProfileLoadError("invalid_role")
        completed = data.get("completed", data.get("profileCompleted", False))
        return cls(
            uid=str(uid),
            email=str(data.get("email") or ""),
            role=role,
            completed=_parse_flag(completed),
            display_name=str(data.get("displayName") or data.get("display_name") or ""),
            created_at=_parse_datetime(data.get("createdAt", data.get("created_at"))),
            last_active=_parse_datetime(data.get("lastActive", data.get("last_active"))),
        )


__all__ = ["ALLOWED_ROLES", "DASHBOARD_BY_ROLE", "Session", "UserProfile"]
