"""
Onboarding routes: profile completion and the student/mentor registrations.

Why:
    A signed-in user without a completed profile is steered here by the route
    guard. Registering forwards the form to the backend API with the user's
    bearer token, links the registration to the account and drops the cached
    profile so the next request sees the completed one.

Behavior:
    - Anonymous visitors may still register (nomination flow); they get a
      confirmation page instead of a dashboard redirect.
    - Validation errors re-render the form (400); backend failures re-render
      it with a notice (502).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import ValidationError

from identity_access.context import AuthContext
from identity_access.errors import ProfileLoadError, ProfileUnavailableError
from mentorship.api_client import NetworkError
from mentorship.models import MentorInput, StudentInput

from .. import wiring
from ..components import Component, MENTOR_FIELDS, STUDENT_FIELDS, MentorForm, StudentForm, collect_values
from ..rendering import PRIVATE_HEADERS, auth_state, field_errors, layout_response, redirect
from .security import csrf_rejection

onboarding_router = APIRouter(tags=["Onboarding"])
logger = logging.getLogger("aspirelink.web.auth")

REGISTRATIONS = {
    "student": (StudentForm, STUDENT_FIELDS, StudentInput, "register_student", "/register-student"),
    "mentor": (MentorForm, MENTOR_FIELDS, MentorInput, "register_mentor", "/register-mentor"),
}


@onboarding_router.get("/complete-profile")
async def complete_profile(request: Request):
    state = auth_state(request)
    if state.session is None:
        return redirect(request, "/signin?next=/complete-profile")
    if state.profile is not None and state.profile.completed:
        return redirect(request, "/dashboard")
    name = state.session.display_name or state.session.email
    content = f"""
    <section class="content-page">
        <h1>Complete your profile</h1>
        <p>Welcome, {Component.escape(name)}! Tell us how you would like to take part in AspireLink.</p>
        <div class="choice-grid">
            <a href="/register-student" class="choice-card">
                <h2>I am a student</h2>
                <p>Get matched with an industry mentor.</p>
            </a>
            <a href="/register-mentor" class="choice-card">
                <h2>I am a mentor</h2>
                <p>Share your experience with a student.</p>
            </a>
        </div>
    </section>"""
    return layout_response(request, "Complete Profile", content, headers=PRIVATE_HEADERS)


def _prefill(request: Request, role: str) -> dict:
    session = auth_state(request).session
    if session is None:
        return {}
    values = {"full_name": session.display_name}
    if role == "student":
        values["email_address"] = session.email
    return values


async def _registration_page(request: Request, role: str):
    form_cls, _fields, _model, _op, action = REGISTRATIONS[role]
    form = form_cls(action=action, submit_label="Submit registration", values=_prefill(request, role))
    return layout_response(request, form.title, form.render(), headers=PRIVATE_HEADERS)


async def _registration_submit(request: Request, role: str):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    form_cls, fields, model, op, action = REGISTRATIONS[role]
    values = collect_values(await request.form(), fields)
    try:
        payload = model(**values)
    except ValidationError as exc:
        form = form_cls(action=action, submit_label="Submit registration", values=values, errors=field_errors(exc))
        return layout_response(request, form.title, form.render(), status_code=400, headers=PRIVATE_HEADERS)

    state = auth_state(request)
    ctx = getattr(request.state, "auth_context", None)
    token = await ctx.get_token() if isinstance(ctx, AuthContext) and state.session else None
    client = wiring.backend_client(token)
    try:
        await getattr(client, op)(payload)
    except NetworkError as exc:
        logger.warning("%s registration failed: status=%s", role, exc.status)
        form = form_cls(
            action=action,
            submit_label="Submit registration",
            values=values,
            notice="Your registration could not be submitted. Please try again later.",
        )
        return layout_response(request, form.title, form.render(), status_code=502, headers=PRIVATE_HEADERS)
    finally:
        await client.aclose()

    if state.session is None or not isinstance(ctx, AuthContext):
        content = """
        <section class="content-page">
            <h1>Thank you!</h1>
            <p role="status">Your registration was received. We will be in touch by email.</p>
        </section>"""
        return layout_response(request, "Registration received", content)

    try:
        await wiring.PROFILES.link_registration(state.session, role)
    except (ProfileLoadError, ProfileUnavailableError) as exc:
        logger.warning("linking %s registration failed: %s", role, type(exc).__name__)
    ctx.invalidate_profile()
    return redirect(request, "/dashboard")


@onboarding_router.get("/register-student")
async def register_student_page(request: Request):
    return await _registration_page(request, "student")


@onboarding_router.post("/register-student")
async def register_student_submit(request: Request):
    return await _registration_submit(request, "student")


@onboarding_router.get("/register-mentor")
async def register_mentor_page(request: Request):
    return await _registration_page(request, "mentor")


@onboarding_router.post("/register-mentor")
async def register_mentor_submit(request: Request):
    return await _registration_submit(request, "mentor")
