"""
Registration, profile completion and the contact form over HTTP.

Requirements:
- Invalid registrations re-render with inline errors (400) and nothing is sent.
- A signed-in user's registration links the profile and unlocks the
  dashboards (the route guard stops redirecting).
- Anonymous registrations and contact messages are forwarded to the backend.
- Backend failures keep the entered values and show a notice (502).
"""
from __future__ import annotations

import json

import httpx
import pytest
from httpx import ASGITransport

from web import main, wiring
from web.auth_utils import SESSION_COOKIE_NAME

from fakes import signed_in_session


pytestmark = pytest.mark.anyio("asyncio")

STUDENT_FORM = {
    "full_name": "Ada Lovelace",
    "email_address": "Ada@Example.com",
    "university_name": "University of London",
    "academic_program": "Mathematics",
    "year_of_study": "3",
    "nominated_by": "Prof. De Morgan",
    "professor_email": "demorgan@example.com",
    "preferred_disciplines": "Computing, Engines",
    "agreed_to_commitment": "true",
}


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _recording_backend(monkeypatch, status: int = 201):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[])
        requests.append(request)
        return httpx.Response(status, json={"id": 7})

    monkeypatch.setattr(wiring, "BACKEND_TRANSPORT", httpx.MockTransport(handler))
    return requests


@pytest.mark.anyio
async def test_registration_page_prefills_signed_in_user():
    sid = signed_in_session()
    async with _client() as client:
        client.cookies.set(SESSION_COOKIE_NAME, sid)
        r = await client.get("/register-student")
    assert r.status_code == 200
    assert 'value="Ada Lovelace"' in r.text
    assert 'value="ada@example.com"' in r.text


@pytest.mark.anyio
async def test_invalid_registration_is_400_and_not_sent(monkeypatch):
    sent = _recording_backend(monkeypatch)
    async with _client() as client:
        r = await client.post("/register-student", data={**STUDENT_FORM, "professor_email": "nope"})
    assert r.status_code == 400
    assert "Please check this field." in r.text
    assert 'value="Ada Lovelace"' in r.text
    assert sent == []


@pytest.mark.anyio
async def test_anonymous_registration_is_forwarded(monkeypatch):
    sent = _recording_backend(monkeypatch)
    async with _client() as client:
        r = await client.post("/register-student", data=STUDENT_FORM)
    assert r.status_code == 200
    assert "Your registration was received" in r.text
    assert sent[0].url.path == "/api/student-registration"
    body = json.loads(sent[0].content)
    assert body["emailAddress"] == "ada@example.com"
    assert body["preferredDisciplines"] == ["Computing", "Engines"]
    assert body["agreedToCommitment"] is True
    assert "isActive" not in body
    assert "Authorization" not in sent[0].headers


@pytest.mark.anyio
async def test_signed_in_registration_links_profile_and_unlocks_dashboard(monkeypatch):
    sent = _recording_backend(monkeypatch)
    sid = signed_in_session()
    async with _client() as client:
        client.cookies.set(SESSION_COOKIE_NAME, sid)
        blocked = await client.get("/dashboard/mentor", follow_redirects=False)
        r = await client.post("/register-mentor", data={"full_name": "Ada Lovelace", "years_experience": "12"}, follow_redirects=False)
        after = await client.get("/dashboard/mentor", follow_redirects=False)
    assert blocked.status_code == 302
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert sent[0].url.path == "/api/mentor-registration"
    assert sent[0].headers["Authorization"] == "Bearer access-id-u1"
    assert json.loads(sent[0].content)["yearsExperience"] == 12
    assert after.status_code == 200
    assert "Welcome back, Ada Lovelace." in after.text


@pytest.mark.anyio
async def test_registration_backend_failure_keeps_values(monkeypatch):
    _recording_backend(monkeypatch, status=500)
    async with _client() as client:
        r = await client.post("/register-student", data=STUDENT_FORM)
    assert r.status_code == 502
    assert "could not be submitted" in r.text
    assert 'value="University of London"' in r.text


@pytest.mark.anyio
async def test_contact_message_is_sent(monkeypatch):
    sent = _recording_backend(monkeypatch)
    async with _client() as client:
        r = await client.post(
            "/contact", data={"name": "Ada", "email": "ada@example.com", "subject": "", "message": "Hello"}
        )
    assert r.status_code == 200
    assert "Thank you!" in r.text
    body = json.loads(sent[0].content)
    assert body == {"name": "Ada", "email": "ada@example.com", "message": "Hello"}


@pytest.mark.anyio
async def test_contact_without_message_is_400(monkeypatch):
    sent = _recording_backend(monkeypatch)
    async with _client() as client:
        r = await client.post("/contact", data={"name": "Ada", "email": "ada@example.com", "message": "  "})
    assert r.status_code == 400
    assert sent == []


@pytest.mark.anyio
async def test_contact_backend_unreachable_is_502(monkeypatch):
    def down(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    monkeypatch.setattr(wiring, "BACKEND_TRANSPORT", httpx.MockTransport(down))
    async with _client() as client:
        r = await client.post("/contact", data={"name": "Ada", "email": "ada@example.com", "message": "Hi"})
    assert r.status_code == 502
    assert "could not be sent" in r.text
