"""
Admin routes: login, dashboard and record management.

Why:
    Administrators authenticate against the backend API, not the identity
    provider. The backend issues an admin token which we keep in an httpOnly
    cookie and forward as bearer token on every admin call.

Behavior:
    - No admin token cookie: every admin page redirects to `/admin/login`.
    - The backend answering 401/403 means the token expired or was revoked;
      the cookie is cleared and the browser is sent back to the login page.
    - Other backend failures re-render the page with a notice (502).
    - All form posts are same-origin checked (403 otherwise).

Permissions:
    Admin token cookie required for everything except `/admin/login`.

Security:
    The admin token and password are never logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from mentorship.api_client import NetworkError
from mentorship.models import AssignmentInput, CohortInput, MentorInput, StudentInput

from .. import config, wiring
from ..auth_utils import ADMIN_TOKEN_COOKIE_NAME, clear_cookie, set_cookie
from ..components import (
    MENTOR_FIELDS,
    STUDENT_FIELDS,
    AdminLoginForm,
    AssignmentForm,
    CohortForm,
    Component,
    MentorForm,
    Notice,
    RecordTable,
    StudentForm,
    collect_values,
)
from ..rendering import PRIVATE_HEADERS, field_errors, layout_response, not_found_response, redirect
from .security import csrf_rejection

admin_router = APIRouter(tags=["Admin"])
logger = logging.getLogger("aspirelink.web.admin")

ADMIN_TOKEN_MAX_AGE = 8 * 60 * 60
BACKEND_FAILURE_NOTICE = "The backend could not complete the request. Please try again later."

# kind -> (form class, field specs, payload model, client method suffix, label)
RECORD_KINDS = {
    "students": (StudentForm, STUDENT_FIELDS, StudentInput, "student", "Student"),
    "mentors": (MentorForm, MENTOR_FIELDS, MentorInput, "mentor", "Mentor"),
}

STAT_LABELS = [
    ("totalStudents", "Students"),
    ("activeStudents", "Active students"),
    ("totalMentors", "Mentors"),
    ("activeMentors", "Active mentors"),
    ("totalAssignments", "Assignments"),
]

STUDENT_COLUMNS = [("fullName", "Name"), ("emailAddress", "Email"), ("universityName", "University"), ("isActive", "Active")]
MENTOR_COLUMNS = [("fullName", "Name"), ("currentJobTitle", "Title"), ("company", "Company"), ("isActive", "Active")]
COHORT_COLUMNS = [("name", "Cohort"), ("startDate", "Start"), ("endDate", "End"), ("sessionsPerMonth", "Sessions / month")]
ASSIGNMENT_COLUMNS = [("mentorName", "Mentor"), ("studentName", "Student"), ("cohortName", "Cohort"), ("assignedAt", "Assigned")]


class _AdminSessionExpired(Exception):
    pass


def _admin_token(request: Request) -> Optional[str]:
    return request.cookies.get(ADMIN_TOKEN_COOKIE_NAME) or None


def _to_login(request: Request, *, expired: bool = False) -> Response:
    response = redirect(request, "/admin/login?expired=1" if expired else "/admin/login")
    if expired:
        clear_cookie(response, ADMIN_TOKEN_COOKIE_NAME, environment=config.environment())
    return response


async def _backend(token: str, op: str, *args):
    """Call one BackendClient method with the admin token.

    Raises `_AdminSessionExpired` when the backend rejects the token and
    `NetworkError` for everything else.
    """
    client = wiring.backend_client(token)
    try:
        return await getattr(client, op)(*args)
    except NetworkError as exc:
        if exc.status in (401, 403):
            raise _AdminSessionExpired() from exc
        logger.warning("admin %s failed: status=%s", op, exc.status)
        raise
    finally:
        await client.aclose()


def _admin_page(request: Request, title: str, content: str, *, status_code: int = 200) -> Response:
    return layout_response(request, title, content, status_code=status_code, headers=PRIVATE_HEADERS)


def _post_button(action: str, label: str, *, hidden: Optional[dict] = None, variant: str = "secondary") -> str:
    hidden_html = "".join(
        f'<input type="hidden" name="{Component.escape(k)}" value="{Component.escape(v)}">' for k, v in (hidden or {}).items()
    )
    return (
        f'<form method="post" action="{Component.escape(action)}" class="inline-form">{hidden_html}'
        f'<button type="submit" class="btn btn-small btn-{variant}">{Component.escape(label)}</button></form>'
    )


def _record_actions(kind: str):
    def actions(record: dict) -> str:
        rid = record.get("id")
        if rid is None:
            return ""
        active = bool(record.get("isActive", True))
        return "".join(
            [
                f'<a href="/admin/{kind}/{rid}/edit" class="btn btn-small">Edit</a>',
                _post_button(
                    f"/admin/{kind}/{rid}/status",
                    "Deactivate" if active else "Activate",
                    hidden={"is_active": "false" if active else "true"},
                ),
                _post_button(f"/admin/{kind}/{rid}/delete", "Delete", variant="danger"),
            ]
        )

    return actions


def _delete_action(path: str):
    def actions(record: dict) -> str:
        rid = record.get("id")
        return _post_button(f"{path}/{rid}/delete", "Delete", variant="danger") if rid is not None else ""

    return actions


# --- Login -------------------------------------------------------------------


@admin_router.get("/admin/login")
async def admin_login_page(request: Request, expired: Optional[str] = None):
    if _admin_token(request):
        return redirect(request, "/admin/dashboard")
    error = "Your admin session has expired. Please log in again." if expired else None
    return _admin_page(request, "Admin Login", AdminLoginForm(error=error).render())


@admin_router.post("/admin/login")
async def admin_login_submit(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    form = await request.form()
    username = str(form.get("username") or "").strip()
    password = str(form.get("password") or "")
    if not username or not password:
        form_html = AdminLoginForm(error="Enter your username and password.", username=username).render()
        return _admin_page(request, "Admin Login", form_html, status_code=400)

    client = wiring.backend_client()
    try:
        token = await client.admin_login(username, password)
    except NetworkError as exc:
        if exc.status == 401:
            logger.info("admin login rejected")
            form_html = AdminLoginForm(error="Invalid username or password.", username=username).render()
            return _admin_page(request, "Admin Login", form_html, status_code=401)
        logger.warning("admin login failed: status=%s", exc.status)
        form_html = AdminLoginForm(error=BACKEND_FAILURE_NOTICE, username=username).render()
        return _admin_page(request, "Admin Login", form_html, status_code=502)
    finally:
        await client.aclose()

    response = redirect(request, "/admin/dashboard")
    set_cookie(response, ADMIN_TOKEN_COOKIE_NAME, token, environment=config.environment(), max_age=ADMIN_TOKEN_MAX_AGE)
    return response


@admin_router.post("/admin/logout")
async def admin_logout(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    response = redirect(request, "/admin/login")
    clear_cookie(response, ADMIN_TOKEN_COOKIE_NAME, environment=config.environment())
    return response


# --- Dashboard ---------------------------------------------------------------


def _stats_html(stats: dict) -> str:
    items = "".join(
        f'<div class="stat"><dt>{Component.escape(label)}</dt><dd>{Component.escape(stats.get(key) or 0)}</dd></div>'
        for key, label in STAT_LABELS
    )
    return f'<dl class="stats-grid">{items}</dl>'


@admin_router.get("/admin/dashboard")
async def admin_dashboard(request: Request):
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    try:
        stats = await _backend(token, "admin_stats")
        students = await _backend(token, "list_students")
        mentors = await _backend(token, "list_mentors")
        assignments = await _backend(token, "list_assignments")
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        content = f'<section class="admin"><h1>Admin dashboard</h1>{Notice(BACKEND_FAILURE_NOTICE).render()}</section>'
        return _admin_page(request, "Admin Dashboard", content, status_code=502)

    content = f"""
    <section class="admin">
        <div class="admin-header">
            <h1>Admin dashboard</h1>
            {_post_button("/admin/logout", "Log out")}
        </div>
        {_stats_html(stats)}
        <nav class="admin-actions" aria-label="Admin actions">
            <a href="/admin/students/new" class="btn btn-primary">Add student</a>
            <a href="/admin/mentors/new" class="btn btn-primary">Add mentor</a>
            <a href="/admin/assignments/new" class="btn btn-primary">New assignment</a>
            <a href="/admin/cohorts" class="btn btn-secondary">Cohorts</a>
        </nav>
        {RecordTable(STUDENT_COLUMNS, students, caption="Students", row_actions=_record_actions("students")).render()}
        {RecordTable(MENTOR_COLUMNS, mentors, caption="Mentors", row_actions=_record_actions("mentors")).render()}
        {RecordTable(ASSIGNMENT_COLUMNS, assignments, caption="Assignments", row_actions=_delete_action("/admin/assignments")).render()}
    </section>"""
    return _admin_page(request, "Admin Dashboard", content)


# --- Cohorts -----------------------------------------------------------------


def _cohorts_content(cohorts: list, form: CohortForm) -> str:
    table = RecordTable(COHORT_COLUMNS, cohorts, caption="Cohorts", row_actions=_delete_action("/admin/cohorts"))
    return f"""
    <section class="admin">
        <h1>Cohorts</h1>
        <p><a href="/admin/dashboard">Back to dashboard</a></p>
        {table.render()}
        {form.render()}
    </section>"""


@admin_router.get("/admin/cohorts")
async def admin_cohorts(request: Request):
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    try:
        cohorts = await _backend(token, "list_cohorts")
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "Cohorts", _cohorts_content([], CohortForm(notice=BACKEND_FAILURE_NOTICE)), status_code=502)
    return _admin_page(request, "Cohorts", _cohorts_content(cohorts, CohortForm()))


@admin_router.post("/admin/cohorts")
async def admin_create_cohort(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    form = await request.form()
    keys = ("name", "description", "start_date", "end_date", "sessions_per_month", "session_duration_minutes")
    values = {k: str(form.get(k) or "") for k in keys}
    try:
        payload = CohortInput(**{k: v for k, v in values.items() if v != ""})
    except ValidationError as exc:
        errors = field_errors(exc)
        notice = "The end date must be after the start date." if "__all__" in errors else None
        return _admin_page(request, "Cohorts", _cohorts_content([], CohortForm(values, errors, notice)), status_code=400)
    try:
        await _backend(token, "create_cohort", payload)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        form_html = CohortForm(values, notice=BACKEND_FAILURE_NOTICE)
        return _admin_page(request, "Cohorts", _cohorts_content([], form_html), status_code=502)
    return redirect(request, "/admin/cohorts")


@admin_router.post("/admin/cohorts/{cohort_id}/delete")
async def admin_delete_cohort(request: Request, cohort_id: int):
    return await _delete(request, "delete_cohort", cohort_id, "/admin/cohorts")


# --- Assignments -------------------------------------------------------------


async def _assignment_page(request: Request, token: str, *, values: Optional[dict] = None, notice: Optional[str] = None, status_code: int = 200):
    mentors = await _backend(token, "list_mentors")
    students = await _backend(token, "list_students")
    cohorts = await _backend(token, "list_cohorts")
    form = AssignmentForm(mentors=mentors, students=students, cohorts=cohorts, values=values, notice=notice)
    content = f'<section class="admin"><p><a href="/admin/dashboard">Back to dashboard</a></p>{form.render()}</section>'
    return _admin_page(request, "New Assignment", content, status_code=status_code)


@admin_router.get("/admin/assignments/new")
async def admin_new_assignment(request: Request):
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    try:
        return await _assignment_page(request, token)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "New Assignment", Notice(BACKEND_FAILURE_NOTICE).render(), status_code=502)


@admin_router.post("/admin/assignments")
async def admin_create_assignment(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    form = await request.form()
    values = {k: str(form.get(k) or "") for k in ("mentor_id", "student_id", "cohort_id")}
    try:
        try:
            payload = AssignmentInput(**values)
        except ValidationError:
            return await _assignment_page(
                request, token, values=values, notice="Select both a mentor and a student.", status_code=400
            )
        try:
            await _backend(token, "create_assignment", payload)
        except NetworkError:
            return await _assignment_page(request, token, values=values, notice=BACKEND_FAILURE_NOTICE, status_code=502)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "New Assignment", Notice(BACKEND_FAILURE_NOTICE).render(), status_code=502)
    return redirect(request, "/admin/dashboard")


@admin_router.post("/admin/assignments/{assignment_id}/delete")
async def admin_delete_assignment(request: Request, assignment_id: int):
    return await _delete(request, "delete_assignment", assignment_id, "/admin/dashboard")


async def _delete(request: Request, op: str, record_id: int, back_to: str) -> Response:
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    try:
        await _backend(token, op, record_id)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "Admin", Notice(BACKEND_FAILURE_NOTICE).render(), status_code=502)
    return redirect(request, back_to)


# --- Students and mentors ----------------------------------------------------


def _record_form(kind: str, *, record_id: Optional[int] = None, values: Optional[dict] = None, errors: Optional[dict] = None, notice: Optional[str] = None):
    form_cls, _fields, _model, _suffix, label = RECORD_KINDS[kind]
    if record_id is None:
        return form_cls(action=f"/admin/{kind}", submit_label=f"Create {label.lower()}", values=values, errors=errors, notice=notice, title=f"New {label.lower()}")
    return form_cls(action=f"/admin/{kind}/{record_id}", submit_label="Save changes", values=values, errors=errors, notice=notice, title=f"Edit {label.lower()}")


def _values_from_record(record: dict) -> dict:
    return {to_snake(key): value for key, value in record.items()}


async def _save_record(request: Request, kind: str, record_id: Optional[int]) -> Response:
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    _form_cls, fields, model, suffix, label = RECORD_KINDS[kind]
    values = collect_values(await request.form(), fields)
    try:
        payload = model(**values)
    except ValidationError as exc:
        form = _record_form(kind, record_id=record_id, values=values, errors=field_errors(exc))
        return _admin_page(request, form.title, form.render(), status_code=400)
    op, args = (f"create_{suffix}", (payload,)) if record_id is None else (f"update_{suffix}", (record_id, payload))
    try:
        await _backend(token, op, *args)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        form = _record_form(kind, record_id=record_id, values=values, notice=BACKEND_FAILURE_NOTICE)
        return _admin_page(request, form.title, form.render(), status_code=502)
    logger.info("admin saved %s", label.lower())
    return redirect(request, "/admin/dashboard")


@admin_router.get("/admin/{kind}/new")
async def admin_new_record(request: Request, kind: str):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    if _admin_token(request) is None:
        return _to_login(request)
    form = _record_form(kind)
    return _admin_page(request, form.title, form.render())


@admin_router.post("/admin/{kind}")
async def admin_create_record(request: Request, kind: str):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    return await _save_record(request, kind, None)


@admin_router.get("/admin/{kind}/{record_id}/edit")
async def admin_edit_record(request: Request, kind: str, record_id: int):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    suffix = RECORD_KINDS[kind][3]
    try:
        record = await _backend(token, f"get_{suffix}", record_id)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "Admin", Notice(BACKEND_FAILURE_NOTICE).render(), status_code=502)
    if record is None:
        return not_found_response(request)
    form = _record_form(kind, record_id=record_id, values=_values_from_record(record))
    return _admin_page(request, form.title, form.render())


@admin_router.post("/admin/{kind}/{record_id}")
async def admin_update_record(request: Request, kind: str, record_id: int):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    return await _save_record(request, kind, record_id)


@admin_router.post("/admin/{kind}/{record_id}/status")
async def admin_set_record_status(request: Request, kind: str, record_id: int):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    token = _admin_token(request)
    if token is None:
        return _to_login(request)
    form = await request.form()
    is_active = str(form.get("is_active") or "").lower() in ("true", "1", "on")
    try:
        await _backend(token, f"set_{RECORD_KINDS[kind][3]}_status", record_id, is_active)
    except _AdminSessionExpired:
        return _to_login(request, expired=True)
    except NetworkError:
        return _admin_page(request, "Admin", Notice(BACKEND_FAILURE_NOTICE).render(), status_code=502)
    return redirect(request, "/admin/dashboard")


@admin_router.post("/admin/{kind}/{record_id}/delete")
async def admin_delete_record(request: Request, kind: str, record_id: int):
    if kind not in RECORD_KINDS:
        return not_found_response(request)
    return await _delete(request, f"delete_{RECORD_KINDS[kind][3]}", record_id, "/admin/dashboard")
