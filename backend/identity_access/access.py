"""
Protected-page access resolution.

Why: Every protected page asks the same questions (still loading? signed in?
profile known? right role?). Answering them in one pure function keeps the
web handlers free of ad-hoc checks and makes the order testable.

Behavior: Returns exactly one variant. The resolver never navigates; the web
layer maps each variant to a placeholder page or the real content.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from .context import AuthState

UNAUTHENTICATED = "unauthenticated"
FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class LoadingProfile:
    pass


@dataclass(frozen=True)
class Denied:
    reason: str
    required_roles: Tuple[str, ...] = ()
    actual_role: Optional[str] = None


@dataclass(frozen=True)
class Granted:
    pass


Access = Union[Loading, LoadingProfile, Denied, Granted]


def resolve_access(
    state: AuthState,
    *,
    allowed_roles: Optional[Iterable[str]] = None,
    require_auth: bool = True,
) -> Access:
    if state.is_loading:
        return Loading()
    if require_auth and state.session is None:
        return Denied(reason=UNAUTHENTICATED)
    if state.session is not None and not state.profile_resolved:
        return LoadingProfile()
    if allowed_roles is not None and state.profile is not None:
        roles = tuple(sorted(set(allowed_roles)))
        if state.profile.role not in roles:
            return Denied(reason=FORBIDDEN, required_roles=roles, actual_role=state.profile.role)
    return Granted()


__all__ = [
    "Access",
    "Denied",
    "FORBIDDEN",
    "Granted",
    "Loading",
    "LoadingProfile",
    "UNAUTHENTICATED",
    "resolve_access",
]
