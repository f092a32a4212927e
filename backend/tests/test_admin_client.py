"""
Keycloak admin client used for self-service sign-up.

Maps the admin API answers onto AuthError kinds:
409 -> account-exists, 400 password policy -> weak-credential,
anything else -> provider-unavailable.
"""
from __future__ import annotations

import types

import pytest

from identity_access.admin_client import AdminClient
from identity_access.errors import ACCOUNT_EXISTS, PROVIDER_UNAVAILABLE, WEAK_CREDENTIAL, AuthError

from fakes import TEST_OIDC_CFG


def _resp(status_code: int, body=None):
    def _json():
        if body is None:
            raise ValueError("no body")
        return body

    return types.SimpleNamespace(status_code=status_code, json=_json)


def _install(monkeypatch, create_response, calls=None):
    calls = calls if calls is not None else []

    def fake_post(url, data=None, json=None, headers=None, timeout=None):
        calls.append({"url": url, "data": data, "json": json, "headers": headers, "timeout": timeout})
        if url.endswith("/token"):
            return _resp(200, {"access_token": "admin-token"})
        return create_response

    monkeypatch.setattr("identity_access.admin_client.requests.post", fake_post)
    return calls


def test_create_user_uses_client_credentials_and_bearer(monkeypatch):
    monkeypatch.setenv("KC_ADMIN_CLIENT_SECRET", "s3cret")
    calls = _install(monkeypatch, _resp(201))
    AdminClient(TEST_OIDC_CFG).create_user(email="ada@example.com", password="secret-pw", display_name="Ada")
    token_call, create_call = calls
    assert token_call["data"]["grant_type"] == "client_credentials"
    assert token_call["data"]["client_secret"] == "s3cret"
    assert create_call["url"] == "https://kc.test/admin/realms/aspirelink/users"
    assert create_call["headers"]["Authorization"] == "Bearer admin-token"
    assert create_call["json"]["email"] == "ada@example.com"
    assert create_call["json"]["firstName"] == "Ada"
    assert all(c["timeout"] for c in calls)


@pytest.mark.parametrize(
    "response, kind",
    [
        (_resp(409, {"errorMessage": "User exists with same email"}), ACCOUNT_EXISTS),
        (_resp(400, {"error": "invalidPasswordMinLengthMessage: password too short"}), WEAK_CREDENTIAL),
        (_resp(400, {"errorMessage": "invalid email"}), PROVIDER_UNAVAILABLE),
        (_resp(500), PROVIDER_UNAVAILABLE),
    ],
)
def test_create_user_maps_errors(monkeypatch, response, kind):
    _install(monkeypatch, response)
    with pytest.raises(AuthError) as exc:
        AdminClient(TEST_OIDC_CFG).create_user(email="ada@example.com", password="secret-pw")
    assert exc.value.kind == kind


def test_admin_token_failure_is_provider_unavailable(monkeypatch):
    def fake_post(url, data=None, json=None, headers=None, timeout=None):
        return _resp(401, {"error": "unauthorized_client"})

    monkeypatch.setattr("identity_access.admin_client.requests.post", fake_post)
    with pytest.raises(AuthError) as exc:
        AdminClient(TEST_OIDC_CFG).create_user(email="ada@example.com", password="secret-pw")
    assert exc.value.kind == PROVIDER_UNAVAILABLE


@pytest.mark.parametrize("body", [["admin-token"], None, {"token_type": "Bearer"}])
def test_unexpected_admin_token_body_is_provider_unavailable(monkeypatch, body):
    def fake_post(url, data=None, json=None, headers=None, timeout=None):
        return _resp(200, body)

    monkeypatch.setattr("identity_access.admin_client.requests.post", fake_post)
    with pytest.raises(AuthError) as exc:
        AdminClient(TEST_OIDC_CFG).create_user(email="ada@example.com", password="secret-pw")
    assert exc.value.kind == PROVIDER_UNAVAILABLE
