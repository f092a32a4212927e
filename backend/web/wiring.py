"""
Process-wide wiring for the web adapter.

Why: Routes and middleware share one OIDC config, one state store, one
session store and one profile repository. Keeping them as module attributes
(read at call time, never copied with `from ... import`) lets tests swap any
of them with `monkeypatch.setattr(wiring, ...)`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from identity_access.context import AuthContext
from identity_access.profiles import ApiProfileRepository, InMemoryProfileRepository, ProfileRepository
from identity_access.provider import IdentityProvider
from identity_access.stores import SessionStore, StateStore
from mentorship.api_client import BackendClient

from . import config

OIDC_CFG = config.load_oidc_config()
STATE_STORE = StateStore()
SESSION_STORE = SessionStore()
IDLE_TIMEOUT_SECONDS = config.idle_timeout_seconds()

# Tests inject an httpx.MockTransport here; None means real network.
BACKEND_TRANSPORT: Optional[httpx.AsyncBaseTransport] = None


def backend_client(token: Optional[str] = None) -> BackendClient:
    return BackendClient(config.backend_api_base_url(), token=token, transport=BACKEND_TRANSPORT)


def _build_profiles() -> ProfileRepository:
    if config.profile_backend() == "api":
        return ApiProfileRepository(lambda token: backend_client(token))
    return InMemoryProfileRepository()


PROFILES: ProfileRepository = _build_profiles()


def new_identity_provider() -> IdentityProvider:
    return IdentityProvider(OIDC_CFG)


def new_auth_context() -> AuthContext:
    return AuthContext(new_identity_provider(), PROFILES, idle_timeout_seconds=IDLE_TIMEOUT_SECONDS)
