"""
Route guard: decides whether a navigation must detour to profile completion.

Why: Users who signed in but never finished registration must not reach
role-specific pages, yet public and onboarding pages stay reachable for them.

Behavior:
- `evaluate(location, state)` is pure and applies, in order: loading,
  public allow-list, incomplete profile (onboarding allow-list or redirect),
  normal.
- `RouteGuard.on_change` is the stateful trigger. It navigates at most once
  per distinct (location, state) pair and never while already on the
  completion path.

The guard does not check authentication or roles; `access.resolve_access`
does that per page.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from .context import AuthState

COMPLETION_PATH = "/complete-profile"

PUBLIC_PATHS = frozenset(
    {
        "/",
        "/about",
        "/students",
        "/mentors",
        "/faq",
        "/contact",
        "/privacy",
        "/terms",
        "/accessibility",
        "/code-of-conduct",
        "/admin/login",
    }
)

ONBOARDING_PATHS = frozenset(
    {
        COMPLETION_PATH,
        "/register-student",
        "/register-mentor",
        "/signin",
        "/signup",
        "/signout",
        "/auth/callback",
        "/auth/federated",
    }
)


class GuardState(str, Enum):
    LOADING = "loading"
    PUBLIC = "public"
    ALLOWED_INCOMPLETE = "allowed_incomplete"
    REDIRECT_TO_COMPLETION = "redirect_to_completion"
    NORMAL = "normal"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None


def _path_of(location: str) -> str:
    """Strip the query string; `/about?x=1` matches `/about`, `/about/x` does not."""
    return (location or "/").split("?", 1)[0].split("#", 1)[0] or "/"


def is_allowed(location: str, allow_list: frozenset) -> bool:
    return _path_of(location) in allow_list


def evaluate(location: str, state: AuthState) -> GuardDecision:
    if state.is_loading:
        return GuardDecision(GuardState.LOADING)
    if is_allowed(location, PUBLIC_PATHS):
        return GuardDecision(GuardState.PUBLIC)
    if state.session is not None and state.needs_profile_completion:
        if is_allowed(location, ONBOARDING_PATHS):
            return GuardDecision(GuardState.ALLOWED_INCOMPLETE)
        return GuardDecision(GuardState.REDIRECT_TO_COMPLETION, redirect_to=COMPLETION_PATH)
    return GuardDecision(GuardState.NORMAL)


def _state_key(state: AuthState) -> Tuple[object, ...]:
    uid = state.session.uid if state.session else None
    return (uid, state.is_loading, state.profile_resolved, state.needs_profile_completion)


class RouteGuard:
    """Stateful wrapper around `evaluate` that suppresses duplicate navigations."""

    def __init__(self) -> None:
        self._last: Optional[Tuple[str, Tuple[object, ...]]] = None

    def on_change(self, location: str, state: AuthState, navigate: Callable[[str], None]) -> GuardDecision:
        decision = evaluate(location, state)
        key = (location, _state_key(state))
        if decision.redirect_to is None:
            self._last = key
            return decision
        if _path_of(location) == COMPLETION_PATH or key == self._last:
            return decision
        self._last = key
        navigate(decision.redirect_to)
        return decision


__all__ = [
    "COMPLETION_PATH",
    "PUBLIC_PATHS",
    "ONBOARDING_PATHS",
    "GuardState",
    "GuardDecision",
    "RouteGuard",
    "evaluate",
    "is_allowed",
]
