"""
Role dashboards.

Behavior:
    - `/dashboard` redirects to the dashboard of the user's role (or to
      sign-in for visitors).
    - `/dashboard/student` and `/dashboard/mentor` resolve access first; any
      outcome other than granted renders its placeholder page.
    - Assignment lists come from the backend API with the user's bearer
      token; a backend failure renders a notice in place of the list.

Permissions:
    Student dashboard: role "student". Mentor dashboard: role "mentor".
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from identity_access.access import resolve_access
from identity_access.context import AuthContext
from identity_access.domain import DASHBOARD_BY_ROLE
from mentorship.api_client import NetworkError

from .. import wiring
from ..components import Component, Notice, RecordTable
from ..rendering import PRIVATE_HEADERS, access_response, auth_state, layout_response, redirect

dashboards_router = APIRouter(tags=["Dashboards"])
logger = logging.getLogger("aspirelink.web")

STUDENT_COLUMNS = [("mentorName", "Mentor"), ("mentorTitle", "Role"), ("mentorCompany", "Company"), ("assignedAt", "Since")]
MENTOR_COLUMNS = [("studentName", "Student"), ("studentProgram", "Program"), ("studentUniversity", "University"), ("assignedAt", "Since")]


@dashboards_router.get("/dashboard")
async def dashboard(request: Request):
    state = auth_state(request)
    if state.session is None:
        return redirect(request, "/signin?next=/dashboard")
    target = DASHBOARD_BY_ROLE.get(state.role or "")
    if target is None:
        return redirect(request, "/complete-profile")
    return redirect(request, target)


async def _assignments(request: Request, op: str) -> tuple[list, str | None]:
    ctx = getattr(request.state, "auth_context", None)
    token = await ctx.get_token() if isinstance(ctx, AuthContext) else None
    client = wiring.backend_client(token)
    try:
        return await getattr(client, op)(), None
    except NetworkError as exc:
        logger.warning("loading %s failed: status=%s", op, exc.status)
        return [], "Your assignments could not be loaded right now. Please try again later."
    finally:
        await client.aclose()


def _dashboard_content(heading: str, greeting_name: str, table: RecordTable, notice: str | None) -> str:
    notice_html = Notice(notice).render() if notice else ""
    return f"""
    <section class="dashboard">
        <h1>{Component.escape(heading)}</h1>
        <p class="lead">Welcome back, {Component.escape(greeting_name)}.</p>
        {notice_html}
        {table.render()}
    </section>"""


@dashboards_router.get("/dashboard/student")
async def student_dashboard(request: Request):
    state = auth_state(request)
    placeholder = access_response(request, resolve_access(state, allowed_roles={"student"}))
    if placeholder is not None:
        return placeholder
    rows, notice = await _assignments(request, "student_assignments")
    table = RecordTable(STUDENT_COLUMNS, rows, caption="Your mentors", empty_text="You have not been matched with a mentor yet.")
    name = state.session.display_name or state.session.email
    return layout_response(request, "Student Dashboard", _dashboard_content("Student dashboard", name, table, notice), headers=PRIVATE_HEADERS)


@dashboards_router.get("/dashboard/mentor")
async def mentor_dashboard(request: Request):
    state = auth_state(request)
    placeholder = access_response(request, resolve_access(state, allowed_roles={"mentor"}))
    if placeholder is not None:
        return placeholder
    rows, notice = await _assignments(request, "mentor_assignments")
    table = RecordTable(MENTOR_COLUMNS, rows, caption="Your students", empty_text="No students have been assigned to you yet.")
    name = state.session.display_name or state.session.email
    return layout_response(request, "Mentor Dashboard", _dashboard_content("Mentor dashboard", name, table, notice), headers=PRIVATE_HEADERS)
