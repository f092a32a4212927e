"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors).
Every test starts with fresh in-memory stores and no identity provider
configuration, so nothing reaches the network unless a test wires a fake.
"""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

# Ensure packages in backend/ and helpers in backend/tests are importable
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(BACKEND_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from identity_access.profiles import InMemoryProfileRepository  # noqa: E402
from identity_access.stores import SessionStore, StateStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _dev_env(monkeypatch: pytest.MonkeyPatch):
    """Dev environment and no Keycloak settings unless a test sets them."""
    monkeypatch.setenv("ASPIRELINK_ENV", "dev")
    for var in ("KC_BASE_URL", "KC_REALM", "KC_CLIENT_ID", "KC_PUBLIC_BASE_URL", "ASPIRELINK_TRUST_PROXY"):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_wiring(monkeypatch: pytest.MonkeyPatch):
    """Replace the process-wide stores with fresh ones for each test.

    Why:
        Session and state stores are module singletons; without a reset,
        sessions and PKCE entries leak across tests.
    """
    from web import wiring

    monkeypatch.setattr(wiring, "OIDC_CFG", None)
    monkeypatch.setattr(wiring, "STATE_STORE", StateStore())
    monkeypatch.setattr(wiring, "SESSION_STORE", SessionStore())
    monkeypatch.setattr(wiring, "PROFILES", InMemoryProfileRepository())
    monkeypatch.setattr(wiring, "BACKEND_TRANSPORT", None)
    yield
    wiring.SESSION_STORE.close_all()
