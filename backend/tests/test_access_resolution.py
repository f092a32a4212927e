"""
Protected-page access resolution.

Order: loading -> unauthenticated -> profile still loading -> role check ->
granted. Each state yields exactly one variant.
"""
from __future__ import annotations

from identity_access.access import (
    FORBIDDEN,
    UNAUTHENTICATED,
    Denied,
    Granted,
    Loading,
    LoadingProfile,
    resolve_access,
)
from identity_access.context import AuthState
from identity_access.domain import Session, UserProfile


def _session() -> Session:
    return Session(uid="u1", email="u1@example.com", display_name="U1", token="t", expires_at=2**31)


def _state(role: str | None = None, *, resolved: bool = True) -> AuthState:
    profile = UserProfile(uid="u1", email="u1@example.com", role=role, completed=True) if role else None
    return AuthState(session=_session(), profile=profile, is_loading=False, profile_resolved=resolved)


def test_loading_wins_over_everything():
    assert resolve_access(AuthState(), allowed_roles={"admin"}) == Loading()


def test_anonymous_is_denied_as_unauthenticated():
    access = resolve_access(AuthState(is_loading=False), allowed_roles={"student"})
    assert access == Denied(reason=UNAUTHENTICATED)


def test_anonymous_is_granted_when_auth_not_required():
    assert resolve_access(AuthState(is_loading=False), require_auth=False) == Granted()


def test_unresolved_profile_reports_loading_profile():
    assert resolve_access(_state("student", resolved=False), allowed_roles={"student"}) == LoadingProfile()


def test_wrong_role_is_forbidden_with_required_and_actual_role():
    access = resolve_access(_state("student"), allowed_roles=["mentor", "admin"])
    assert isinstance(access, Denied)
    assert access.reason == FORBIDDEN
    assert access.required_roles == ("admin", "mentor")
    assert access.actual_role == "student"


def test_matching_role_is_granted():
    assert resolve_access(_state("mentor"), allowed_roles={"mentor"}) == Granted()


def test_no_role_restriction_grants_any_signed_in_user():
    assert resolve_access(_state("student")) == Granted()


def test_resolved_without_profile_is_granted():
    # The route guard already sends these users to profile completion.
    assert resolve_access(_state(None), allowed_roles={"student"}) == Granted()
