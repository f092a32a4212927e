"""
Async client for the mentorship backend REST API.

Why: The web process owns no mentorship data; students, mentors, cohorts and
assignments live behind the backend API. One client keeps URL building,
bearer tokens and error mapping in a single place.

Behavior:
- Every transport failure or non-2xx response raises `NetworkError` with the
  HTTP status (0 for transport failures) and a short detail string.
- 204 and empty bodies return None.
- No retries; callers decide how to surface the failure.

Security: The bearer token is sent in the Authorization header only and never
logged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

import httpx

from .models import AssignmentInput, CohortInput, ContactInput, MentorInput, StudentInput

logger = logging.getLogger("aspirelink.mentorship")

DEFAULT_TIMEOUT_SECONDS = 10.0


class NetworkError(Exception):
    """Raised when the backend cannot be reached or rejects a request."""

    def __init__(self, status: int, detail: str = ""):
        super().__init__(f"{status}: {detail}" if detail else str(status))
        self.status = status
        self.detail = detail


def _detail_of(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase or ""
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return resp.reason_phrase or ""


class BackendClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None, allow_404: bool = False) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("backend %s %s failed: %s", method, path, type(exc).__name__)
            raise NetworkError(0, type(exc).__name__) from exc
        if allow_404 and resp.status_code == 404:
            return None
        if resp.status_code < 200 or resp.status_code >= 300:
            logger.info("backend %s %s -> %s", method, path, resp.status_code)
            raise NetworkError(resp.status_code, _detail_of(resp))
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise NetworkError(resp.status_code, "invalid_json") from exc

    # --- Admin ----------------------------------------------------------------

    async def admin_login(self, username: str, password: str) -> str:
        """Return the admin token issued by the backend."""
        data = await self._request("POST", "/api/admin/login", json={"username": username, "password": password})
        token = (data or {}).get("token") if isinstance(data, dict) else None
        if not token:
            raise NetworkError(502, "missing_token")
        return str(token)

    async def admin_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/admin/stats") or {}

    # --- Students -------------------------------------------------------------

    async def list_students(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/admin/students") or []

    async def get_student(self, student_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/api/admin/students/{int(student_id)}", allow_404=True)

    async def create_student(self, payload: StudentInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/admin/students", json=payload.to_json())

    async def update_student(self, student_id: int, payload: StudentInput) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/admin/students/{int(student_id)}", json=payload.to_json())

    async def set_student_status(self, student_id: int, is_active: bool) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/api/admin/students/{int(student_id)}/status", json={"isActive": bool(is_active)}
        )

    async def delete_student(self, student_id: int) -> None:
        await self._request("DELETE", f"/api/admin/students/{int(student_id)}")

    # --- Mentors --------------------------------------------------------------

    async def list_mentors(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/admin/mentors") or []

    async def get_mentor(self, mentor_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/api/admin/mentors/{int(mentor_id)}", allow_404=True)

    async def create_mentor(self, payload: MentorInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/admin/mentors", json=payload.to_json())

    async def update_mentor(self, mentor_id: int, payload: MentorInput) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/admin/mentors/{int(mentor_id)}", json=payload.to_json())

    async def set_mentor_status(self, mentor_id: int, is_active: bool) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/api/admin/mentors/{int(mentor_id)}/status", json={"isActive": bool(is_active)}
        )

    async def delete_mentor(self, mentor_id: int) -> None:
        await self._request("DELETE", f"/api/admin/mentors/{int(mentor_id)}")

    # --- Cohorts --------------------------------------------------------------

    async def list_cohorts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/cohorts") or []

    async def get_cohort(self, cohort_id: int) -> Optional[Dict[str, Any]]:
        return await self._request("GET", f"/api/cohorts/{int(cohort_id)}", allow_404=True)

    async def create_cohort(self, payload: CohortInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/cohorts", json=payload.to_json())

    async def update_cohort(self, cohort_id: int, payload: CohortInput) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/cohorts/{int(cohort_id)}", json=payload.to_json())

    async def delete_cohort(self, cohort_id: int) -> None:
        await self._request("DELETE", f"/api/cohorts/{int(cohort_id)}")

    # --- Assignments ----------------------------------------------------------

    async def list_assignments(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/admin/assignments") or []

    async def create_assignment(self, payload: AssignmentInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/admin/assignments", json=payload.to_json())

    async def delete_assignment(self, assignment_id: int) -> None:
        await self._request("DELETE", f"/api/admin/assignments/{int(assignment_id)}")

    # --- Registrations, contact, dashboards -----------------------------------

    async def register_student(self, payload: StudentInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/student-registration", json=payload.to_json())

    async def register_mentor(self, payload: MentorInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/mentor-registration", json=payload.to_json())

    async def submit_contact(self, payload: ContactInput) -> Dict[str, Any]:
        return await self._request("POST", "/api/contact", json=payload.to_json())

    async def student_assignments(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/student/assignments") or []

    async def mentor_assignments(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/mentor/assignments") or []

    # --- Profile --------------------------------------------------------------

    async def fetch_profile(self) -> Optional[Dict[str, Any]]:
        """Profile of the token's user; None when the user has none yet (404)."""
        return await self._request("GET", "/api/auth/user", allow_404=True)

    async def link_registration(self, role: str) -> Optional[Dict[str, Any]]:
        return await self._request("POST", "/api/auth/link-registration", json={"role": role})

    async def touch_last_active(self) -> None:
        await self._request("POST", "/api/auth/last-active")


__all__ = ["BackendClient", "NetworkError", "DEFAULT_TIMEOUT_SECONDS"]
