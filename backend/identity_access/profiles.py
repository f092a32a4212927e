"""
Profile repositories: where the application-level user record comes from.

Why: The auth context must not know whether profiles live in memory (dev and
tests) or behind the backend REST API (prod). Both implement the same async
port.

Behavior:
- `get(session)` returns the profile, or None when the user has none yet.
- Malformed records raise `ProfileLoadError`; an unreachable source raises
  `ProfileUnavailableError`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol
import logging

from mentorship.api_client import NetworkError

from .domain import ALLOWED_ROLES, Session, UserProfile
from .errors import ProfileLoadError, ProfileUnavailableError

logger = logging.getLogger("aspirelink.identity_access")


class ProfileRepository(Protocol):
    async def get(self, session: Session) -> Optional[UserProfile]:
        ...

    async def link_registration(self, session: Session, role: str) -> Optional[UserProfile]:
        ...

    async def touch_last_active(self, session: Session) -> None:
        ...


class InMemoryProfileRepository:
    """Dev/test repository keyed by uid."""

    def __init__(self) -> None:
        self._data: Dict[str, UserProfile] = {}

    def put(self, profile: UserProfile) -> None:
        self._data[profile.uid] = profile

    async def get(self, session: Session) -> Optional[UserProfile]:
        return self._data.get(session.uid)

    async def link_registration(self, session: Session, role: str) -> Optional[UserProfile]:
        if role not in ALLOWED_ROLES:
            raise ProfileLoadError("invalid_role")
        now = datetime.now(timezone.utc)
        existing = self._data.get(session.uid)
        profile = UserProfile(
            uid=session.uid,
            email=session.email,
            role=role,
            completed=True,
            display_name=session.display_name,
            created_at=existing.created_at if existing else now,
            last_active=now,
        )
        self._data[session.uid] = profile
        return profile

    async def touch_last_active(self, session: Session) -> None:
        existing = self._data.get(session.uid)
        if existing is None:
            return
        self._data[session.uid] = UserProfile(
            uid=existing.uid,
            email=existing.email,
            role=existing.role,
            completed=existing.completed,
            display_name=existing.display_name,
            created_at=existing.created_at,
            last_active=datetime.now(timezone.utc),
        )


class ApiProfileRepository:
    """Profiles served by the backend REST API.

    `client_factory(token)` returns a `mentorship.api_client.BackendClient`
    bound to the user's bearer token.
    """

    def __init__(self, client_factory: Callable[[Optional[str]], Any]) -> None:
        self._client_factory = client_factory

    async def _call(self, session: Session, op: str, *args: Any) -> Any:
        client = self._client_factory(session.token)
        try:
            return await getattr(client, op)(*args)
        except NetworkError as exc:
            logger.warning("profile backend call %s failed: status=%s", op, exc.status)
            raise ProfileUnavailableError(exc.status) from exc
        finally:
            await client.aclose()

    async def get(self, session: Session) -> Optional[UserProfile]:
        data = await self._call(session, "fetch_profile")
        if data is None:
            return None
        return UserProfile.from_mapping(data)

    async def link_registration(self, session: Session, role: str) -> Optional[UserProfile]:
        data = await self._call(session, "link_registration", role)
        if not data:
            return None
        return UserProfile.from_mapping(data)

    async def touch_last_active(self, session: Session) -> None:
        await self._call(session, "touch_last_active")


__all__ = ["ProfileRepository", "InMemoryProfileRepository", "ApiProfileRepository"]
