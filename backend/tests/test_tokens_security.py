"""
Security tests for ID token verification.

- jwt.decode is called with algorithms=["RS256"] regardless of the JWKS 'alg'.
- Both the internal and the browser-facing realm issuer are accepted.
- An unknown key id forces one JWKS refetch, then is rejected.
- Nonce mismatches and expired tokens are rejected.
"""

from __future__ import annotations

import time

import pytest
from jose.exceptions import JOSEError

from identity_access import tokens as tokens_mod
from identity_access.tokens import IDTokenVerificationError, identity_from_claims, verify_id_token

from fakes import TEST_OIDC_CFG


class FakeCache:
    """Serves `before` until a refetch is forced, then `after`."""

    def __init__(self, before=("kid1",), after=None):
        self.before = before
        self.after = before if after is None else after
        self.refreshes = 0

    def get(self, cfg, *, refresh=False):
        if refresh:
            self.refreshes += 1
        kids = self.after if self.refreshes else self.before
        return {"keys": [{"kid": kid, "kty": "RSA", "alg": "HS256"} for kid in kids]}


def _claims(**overrides):
    now = int(time.time())
    claims = {"sub": "u1", "exp": now + 60, "iat": now, "nonce": "n1"}
    claims.update(overrides)
    return claims


@pytest.fixture
def header_kid(monkeypatch: pytest.MonkeyPatch):
    def use(kid: str = "kid1"):
        monkeypatch.setattr(tokens_mod.jwt, "get_unverified_header", lambda _: {"kid": kid})

    use()
    return use


def test_verify_enforces_rs256_and_accepted_issuers(monkeypatch: pytest.MonkeyPatch, header_kid):
    captured = {}

    def fake_decode(token, key, algorithms=None, **kwargs):
        captured["algorithms"] = list(algorithms or [])
        captured["audience"] = kwargs.get("audience")
        captured["issuer"] = kwargs.get("issuer")
        raise JOSEError("boom")

    monkeypatch.setattr(tokens_mod.jwt, "decode", fake_decode)

    with pytest.raises(IDTokenVerificationError) as exc:
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=FakeCache())

    assert exc.value.code == "invalid_id_token"
    assert captured["algorithms"] == ["RS256"]
    assert captured["audience"] == "aspirelink-web"
    assert captured["issuer"] == ["https://kc.test/realms/aspirelink", "https://id.test/realms/aspirelink"]


def test_unknown_kid_refetches_once_then_rejects(header_kid):
    header_kid("other")
    cache = FakeCache()
    with pytest.raises(IDTokenVerificationError) as exc:
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=cache)
    assert exc.value.code == "unknown_kid"
    assert cache.refreshes == 1


def test_rotated_key_is_found_after_refetch(monkeypatch: pytest.MonkeyPatch, header_kid):
    header_kid("kid2")
    monkeypatch.setattr(tokens_mod.jwt, "decode", lambda *a, **k: _claims())
    cache = FakeCache(before=("kid1",), after=("kid2",))
    claims = verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=cache)
    assert claims["sub"] == "u1"
    assert cache.refreshes == 1


def test_missing_kid_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(tokens_mod.jwt, "get_unverified_header", lambda _: {})
    with pytest.raises(IDTokenVerificationError) as exc:
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=FakeCache())
    assert exc.value.code == "missing_kid"


def test_nonce_mismatch_is_rejected(monkeypatch: pytest.MonkeyPatch, header_kid):
    monkeypatch.setattr(tokens_mod.jwt, "decode", lambda *a, **k: _claims(nonce="n1"))
    with pytest.raises(IDTokenVerificationError) as exc:
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=FakeCache(), nonce="n2")
    assert exc.value.code == "nonce_mismatch"


@pytest.mark.parametrize("overrides", [{"exp": -60}, {"iat": 3600}, {"nbf": 3600}, {"exp": None}])
def test_temporal_claims_are_enforced(monkeypatch: pytest.MonkeyPatch, header_kid, overrides):
    now = int(time.time())
    claims = _claims(**{k: (now + v if v is not None else None) for k, v in overrides.items()})
    monkeypatch.setattr(tokens_mod.jwt, "decode", lambda *a, **k: claims)
    with pytest.raises(IDTokenVerificationError):
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=FakeCache())


def test_valid_token_returns_claims(monkeypatch: pytest.MonkeyPatch, header_kid):
    monkeypatch.setattr(tokens_mod.jwt, "decode", lambda *a, **k: _claims())
    claims = verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=FakeCache(), nonce="n1")
    assert claims["sub"] == "u1"


def test_jwks_fetch_failure_is_reported(monkeypatch: pytest.MonkeyPatch, header_kid):
    import requests

    def down(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(tokens_mod.requests, "get", down)
    with pytest.raises(IDTokenVerificationError) as exc:
        verify_id_token(id_token="dummy", cfg=TEST_OIDC_CFG, cache=tokens_mod.JWKSCache())
    assert exc.value.code == "jwks_fetch_failed"


@pytest.mark.parametrize(
    "claims, name",
    [
        ({"sub": "u1", "email": "ada@example.com", "name": "Ada Lovelace"}, "Ada Lovelace"),
        ({"sub": "u1", "email": "ada@example.com", "given_name": "Ada"}, "Ada"),
        ({"sub": "u1", "email": "ada@example.com", "preferred_username": "ada.l"}, "ada.l"),
        ({"sub": "u1", "email": "ada@example.com"}, "ada"),
    ],
)
def test_identity_display_name_fallbacks(claims, name):
    identity = identity_from_claims(claims)
    assert identity.uid == "u1"
    assert identity.display_name == name
