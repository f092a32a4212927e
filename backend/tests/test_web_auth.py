"""
Sign-in, sign-up, sign-out and the brokered login over HTTP.

Requirements:
- AuthError kinds map to 401/409/400/503 and are shown inline.
- The password is never echoed back into the form.
- Successful sign-in creates a server-side session and sets the cookie.
- Sign-out always clears the local session and the cookie.
- Brokered login uses a single-use state; unknown states are rejected (400).
- Cross-origin form posts are rejected (403).
"""
from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from identity_access.errors import ACCOUNT_EXISTS, AuthError
from identity_access.oidc import TokenRequestError
from identity_access.provider import IdentityProvider
from web import main, wiring
from web.auth_utils import SESSION_COOKIE_NAME

from fakes import FakeAdmin, make_provider, signed_in_session


pytestmark = pytest.mark.anyio("asyncio")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _use_provider(monkeypatch, provider_factory) -> None:
    monkeypatch.setattr(wiring, "new_identity_provider", provider_factory)


@pytest.mark.anyio
async def test_signin_page_renders_session_expired_notice():
    async with _client() as client:
        r = await client.get("/signin?error=session-expired")
    assert r.status_code == 200
    assert "period of inactivity" in r.text


@pytest.mark.anyio
async def test_signin_success_sets_session_cookie_and_redirects(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.post(
            "/signin", data={"email": "ada@example.com", "password": "secret-pw"}, follow_redirects=False
        )
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert SESSION_COOKIE_NAME in r.headers.get("set-cookie", "")
    assert len(wiring.SESSION_STORE) == 1


@pytest.mark.anyio
async def test_signin_honours_inapp_next_only(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        ok = await client.post(
            "/signin",
            data={"email": "ada@example.com", "password": "secret-pw", "next": "/dashboard/mentor"},
            follow_redirects=False,
        )
        evil = await client.post(
            "/signin",
            data={"email": "ada@example.com", "password": "secret-pw", "next": "//evil.example"},
            follow_redirects=False,
        )
    assert ok.headers["location"] == "/dashboard/mentor"
    assert evil.headers["location"] == "/dashboard"


@pytest.mark.anyio
async def test_signin_invalid_credentials_is_401_without_password_echo(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider(error=TokenRequestError("invalid_grant", 401)))
    async with _client() as client:
        r = await client.post(
            "/signin", data={"email": "ada@example.com", "password": "hunter2-secret"}, follow_redirects=False
        )
    assert r.status_code == 401
    assert "The email or password is incorrect." in r.text
    assert "hunter2-secret" not in r.text
    assert 'value="ada@example.com"' in r.text
    assert len(wiring.SESSION_STORE) == 0


@pytest.mark.anyio
async def test_signin_without_configuration_is_503():
    async with _client() as client:
        r = await client.post("/signin", data={"email": "ada@example.com", "password": "secret-pw"})
    assert r.status_code == 503
    assert "authentication is not configured" in r.text


@pytest.mark.anyio
async def test_signin_provider_outage_is_503(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider(error=TokenRequestError("http_503", 503)))
    async with _client() as client:
        r = await client.post("/signin", data={"email": "ada@example.com", "password": "secret-pw"})
    assert r.status_code == 503
    assert "temporarily unavailable" in r.text


@pytest.mark.anyio
async def test_signup_weak_password_is_400(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.post("/signup", data={"email": "ada@example.com", "password": "123"})
    assert r.status_code == 400
    assert "stronger password" in r.text


@pytest.mark.anyio
async def test_signup_existing_account_is_409(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider(admin=FakeAdmin(error=AuthError(ACCOUNT_EXISTS))))
    async with _client() as client:
        r = await client.post("/signup", data={"email": "ada@example.com", "password": "secret-pw"})
    assert r.status_code == 409
    assert "already exists" in r.text


@pytest.mark.anyio
async def test_signup_success_goes_to_profile_completion(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.post(
            "/signup",
            data={"email": "ada@example.com", "password": "secret-pw", "display_name": "Ada"},
            follow_redirects=False,
        )
    assert r.status_code == 303
    assert r.headers["location"] == "/complete-profile"
    assert SESSION_COOKIE_NAME in r.headers.get("set-cookie", "")


@pytest.mark.anyio
async def test_signed_in_user_visiting_signin_goes_to_dashboard():
    sid = signed_in_session()
    async with _client() as client:
        client.cookies.set(SESSION_COOKIE_NAME, sid)
        r = await client.get("/signin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


@pytest.mark.anyio
async def test_signout_clears_session_and_cookie():
    sid = signed_in_session()
    async with _client() as client:
        client.cookies.set(SESSION_COOKIE_NAME, sid)
        r = await client.post("/signout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert SESSION_COOKIE_NAME in r.headers.get("set-cookie", "")
    assert wiring.SESSION_STORE.get(sid) is None


@pytest.mark.anyio
async def test_cross_origin_post_is_rejected(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.post(
            "/signin",
            data={"email": "ada@example.com", "password": "secret-pw"},
            headers={"Origin": "https://evil.example"},
        )
    assert r.status_code == 403
    assert len(wiring.SESSION_STORE) == 0


@pytest.mark.anyio
async def test_federated_start_without_configuration_is_503():
    async with _client() as client:
        r = await client.get("/auth/federated", follow_redirects=False)
    assert r.status_code == 503


@pytest.mark.anyio
async def test_federated_start_redirects_to_identity_provider(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.get("/auth/federated?next=/dashboard/student", follow_redirects=False)
    assert r.status_code == 302
    location = r.headers["location"]
    assert location.startswith("https://id.test/auth?")
    assert "kc_idp_hint=google" in location


@pytest.mark.anyio
async def test_callback_with_unknown_state_is_400(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    async with _client() as client:
        r = await client.get("/auth/callback?code=abc&state=forged", follow_redirects=False)
    assert r.status_code == 400
    assert "sign-in attempt expired" in r.text


@pytest.mark.anyio
async def test_callback_signs_in_once_per_state(monkeypatch):
    _use_provider(monkeypatch, lambda: make_provider())
    rec = wiring.STATE_STORE.create(code_verifier="verifier-1", redirect="/about")
    async with _client() as client:
        first = await client.get(f"/auth/callback?code=abc&state={rec.state}", follow_redirects=False)
        replay = await client.get(f"/auth/callback?code=abc&state={rec.state}", follow_redirects=False)
    assert first.status_code == 303
    assert first.headers["location"] == "/about"
    assert SESSION_COOKIE_NAME in first.headers.get("set-cookie", "")
    assert replay.status_code == 400


@pytest.mark.anyio
async def test_callback_with_provider_error_is_401():
    async with _client() as client:
        r = await client.get("/auth/callback?error=access_denied", follow_redirects=False)
    assert r.status_code == 401


def test_unconfigured_provider_from_wiring():
    assert isinstance(wiring.new_identity_provider(), IdentityProvider)
    assert wiring.new_identity_provider().configured is False
