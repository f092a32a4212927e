"""
Backend REST client.

Uses httpx.MockTransport so requests never leave the process.
- Bearer token and camelCase payloads on the wire.
- Non-2xx answers and transport failures raise NetworkError.
- 404 on the profile endpoint means "no profile yet".
"""
from __future__ import annotations

from datetime import date
import json

import httpx
import pytest

from identity_access.domain import Session, UserProfile
from identity_access.errors import ProfileLoadError, ProfileUnavailableError
from identity_access.profiles import ApiProfileRepository
from mentorship.api_client import BackendClient, NetworkError
from mentorship.models import CohortInput, StudentInput


pytestmark = pytest.mark.anyio("asyncio")


def _client(handler, token=None) -> BackendClient:
    return BackendClient("http://backend.test/", token=token, transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_requests_carry_bearer_token_and_camel_case_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 7})

    payload = CohortInput(name="Spring", start_date=date(2026, 1, 10), end_date=date(2026, 5, 10))
    async with _client(handler, token="tok") as client:
        created = await client.create_cohort(payload)
    assert created == {"id": 7}
    assert seen["auth"] == "Bearer tok"
    assert seen["path"] == "/api/cohorts"
    assert seen["body"]["startDate"] == "2026-01-10"
    assert seen["body"]["sessionsPerMonth"] == 2
    assert "description" not in seen["body"]


@pytest.mark.anyio
async def test_error_status_raises_network_error_with_detail():
    def handler(request):
        return httpx.Response(409, json={"message": "already assigned"})

    async with _client(handler) as client:
        with pytest.raises(NetworkError) as exc:
            await client.list_students()
    assert exc.value.status == 409
    assert exc.value.detail == "already assigned"


@pytest.mark.anyio
async def test_transport_failure_is_status_zero():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError) as exc:
            await client.admin_stats()
    assert exc.value.status == 0


@pytest.mark.anyio
async def test_delete_with_empty_body_returns_none():
    def handler(request):
        assert request.method == "DELETE"
        assert request.url.path == "/api/admin/assignments/3"
        return httpx.Response(204)

    async with _client(handler) as client:
        assert await client.delete_assignment(3) is None


@pytest.mark.anyio
async def test_status_toggle_sends_is_active_flag():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": 5, "isActive": False})

    async with _client(handler) as client:
        await client.set_mentor_status(5, False)
    assert seen == {"method": "PATCH", "body": {"isActive": False}}


@pytest.mark.anyio
async def test_admin_login_requires_token_in_body():
    def handler(request):
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as client:
        with pytest.raises(NetworkError) as exc:
            await client.admin_login("admin", "pw")
    assert exc.value.status == 502


@pytest.mark.anyio
async def test_fetch_profile_404_means_no_profile():
    def handler(request):
        return httpx.Response(404, json={"message": "not found"})

    async with _client(handler, token="tok") as client:
        assert await client.fetch_profile() is None


@pytest.mark.anyio
async def test_student_payload_uses_wire_names():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 1})

    payload = StudentInput(
        full_name="Ada",
        email_address="ADA@Example.com",
        university_name="UofT",
        academic_program="CS",
        year_of_study="3",
        nominated_by="Prof. B",
        professor_email="b@uni.test",
        mentoring_topics="career, interviews",
    )
    async with _client(handler) as client:
        await client.register_student(payload)
    body = seen["body"]
    assert body["emailAddress"] == "ada@example.com"
    assert body["mentoringTopics"] == ["career", "interviews"]
    assert "isActive" not in body


# --- Profile repository over the API -------------------------------------------


def _session() -> Session:
    return Session(uid="u1", email="u1@example.com", display_name="U1", token="tok-u1", expires_at=2**31)


def _repo(handler) -> ApiProfileRepository:
    return ApiProfileRepository(lambda token: _client(handler, token=token))


@pytest.mark.anyio
async def test_profile_repository_parses_backend_profile():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer tok-u1"
        return httpx.Response(
            200, json={"uid": "u1", "email": "u1@example.com", "role": "mentor", "profileCompleted": True}
        )

    profile = await _repo(handler).get(_session())
    assert profile.role == "mentor"
    assert profile.completed is True


@pytest.mark.anyio
async def test_profile_repository_maps_backend_outage():
    def handler(request):
        return httpx.Response(503)

    with pytest.raises(ProfileUnavailableError) as exc:
        await _repo(handler).get(_session())
    assert exc.value.status == 503


@pytest.mark.anyio
async def test_profile_repository_links_registration():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"uid": "u1", "role": "student", "completed": True})

    profile = await _repo(handler).link_registration(_session(), "student")
    assert seen == {"path": "/api/auth/link-registration", "body": {"role": "student"}}
    assert profile.completed is True


@pytest.mark.parametrize("raw, expected", [(True, True), (False, False), ("true", True), ("false", False), ("False", False)])
def test_profile_completed_flag_accepts_bools_and_strings(raw, expected):
    profile = UserProfile.from_mapping({"uid": "u1", "role": "student", "completed": raw})
    assert profile.completed is expected


@pytest.mark.parametrize("raw", ["yes", 1, None])
def test_profile_completed_flag_rejects_other_values(raw):
    with pytest.raises(ProfileLoadError) as exc:
        UserProfile.from_mapping({"uid": "u1", "role": "student", "completed": raw})
    assert exc.value.code == "malformed_profile"
