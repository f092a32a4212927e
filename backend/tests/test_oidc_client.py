"""
OIDC client hardening tests.

Focus:
- http_post enforces a timeout for IdP calls
- the federated authorization URL carries PKCE, nonce and the broker hint
- token endpoint errors surface the OAuth error code and status
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse
import types

import pytest

from identity_access.oidc import OIDCClient, TokenRequestError, http_post

from fakes import TEST_OIDC_CFG


def test_http_post_sets_timeout(monkeypatch):
    called = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        called["url"] = url
        called["timeout"] = timeout
        return types.SimpleNamespace(status_code=200, json=lambda: {"ok": True})

    # Patch the requests alias used in oidc module
    monkeypatch.setattr("identity_access.oidc.http.post", fake_post, raising=False)

    resp = http_post("http://idp/token", {"a": "b"}, {"h": "v"})
    assert resp.status_code == 200
    assert called.get("timeout") == 5


def test_authorization_url_uses_public_base_and_pkce():
    client = OIDCClient(TEST_OIDC_CFG)
    verifier = OIDCClient.generate_code_verifier()
    url = client.build_authorization_url(
        state="st", code_challenge=OIDCClient.code_challenge_s256(verifier), nonce="nn", idp_hint="google"
    )
    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert parsed.netloc == "id.test"
    assert params["code_challenge_method"] == ["S256"]
    assert params["nonce"] == ["nn"]
    assert params["kc_idp_hint"] == ["google"]
    assert params["redirect_uri"] == ["https://test/auth/callback"]


def test_code_verifier_is_long_enough_and_challenge_is_deterministic():
    verifier = OIDCClient.generate_code_verifier()
    assert 43 <= len(verifier) <= 128
    assert OIDCClient.code_challenge_s256(verifier) == OIDCClient.code_challenge_s256(verifier)


def test_token_error_carries_oauth_error_code(monkeypatch):
    def fake_post(url, data=None, headers=None, timeout=None):
        return types.SimpleNamespace(status_code=401, json=lambda: {"error": "invalid_grant"})

    monkeypatch.setattr("identity_access.oidc.http.post", fake_post, raising=False)
    with pytest.raises(TokenRequestError) as exc:
        OIDCClient(TEST_OIDC_CFG).password_grant(email="a@example.com", password="x")
    assert exc.value.error == "invalid_grant"
    assert exc.value.status_code == 401


def test_token_error_without_json_body(monkeypatch):
    def bad_json():
        raise ValueError("not json")

    def fake_post(url, data=None, headers=None, timeout=None):
        return types.SimpleNamespace(status_code=502, json=bad_json)

    monkeypatch.setattr("identity_access.oidc.http.post", fake_post, raising=False)
    with pytest.raises(TokenRequestError) as exc:
        OIDCClient(TEST_OIDC_CFG).refresh(refresh_token="r")
    assert exc.value.error == "http_502"
