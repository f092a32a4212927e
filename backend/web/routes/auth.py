"""
Authentication routes: sign in, sign up, sign out and the brokered
(Google via Keycloak) login.

Why:
    Keep the browser-facing auth flow in one router. Every operation goes
    through the per-browser `AuthContext`, so the session cookie only ever
    points at server-side state.

Behavior:
    - Form posts are same-origin checked (403 otherwise).
    - `AuthError` kinds are re-rendered inline with a status per kind:
      401 invalid credentials, 409 account exists, 400 weak credential,
      503 provider unavailable or not configured.
    - Successful sign-in sets `aspirelink_session` and redirects (303) to
      `/dashboard`, or to a validated in-app `next` path.

Security:
    Passwords and tokens are never logged; only error kinds are.
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse, Response

from identity_access.context import AuthContext
from identity_access.errors import (
    ACCOUNT_EXISTS,
    INVALID_CREDENTIALS,
    NOT_CONFIGURED,
    PROVIDER_UNAVAILABLE,
    WEAK_CREDENTIAL,
    AuthError,
)
from identity_access.oidc import OIDCClient

from .. import config, wiring
from ..auth_utils import SESSION_COOKIE_NAME, clear_cookie, set_cookie
from ..components import Component, SignInForm, SignUpForm
from ..rendering import PRIVATE_HEADERS, auth_state, layout_response, redirect
from .security import csrf_rejection

auth_router = APIRouter(tags=["Auth"])
logger = logging.getLogger("aspirelink.web.auth")

# Absolute in-app paths only: no scheme/host, no "//", no "..".
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/]*$")
MAX_INAPP_REDIRECT_LEN = 256

STATUS_BY_KIND = {
    INVALID_CREDENTIALS: 401,
    ACCOUNT_EXISTS: 409,
    WEAK_CREDENTIAL: 400,
    PROVIDER_UNAVAILABLE: 503,
    NOT_CONFIGURED: 503,
}


def _is_inapp_path(value: str | None) -> bool:
    """Return True for absolute in-app paths such as "/" or "/dashboard/mentor"."""
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    return bool(INAPP_PATH_PATTERN.match(value))


def _new_or_current_context(request: Request) -> tuple[AuthContext, bool]:
    """Return the browser's context, or a fresh started one (flag True)."""
    ctx = getattr(request.state, "auth_context", None)
    if isinstance(ctx, AuthContext):
        return ctx, False
    ctx = wiring.new_auth_context()
    ctx.start()
    return ctx, True


def _signed_in_response(request: Request, ctx: AuthContext, is_new: bool, target: str) -> Response:
    response = RedirectResponse(url=target, status_code=303, headers=PRIVATE_HEADERS)
    if is_new:
        rec = wiring.SESSION_STORE.create(context=ctx)
        set_cookie(response, SESSION_COOKIE_NAME, rec.session_id, environment=config.environment())
    return response


def _error_page(request: Request, title: str, form: Component, kind: str) -> Response:
    return layout_response(
        request,
        title,
        form.render(),
        status_code=STATUS_BY_KIND.get(kind, 400),
        headers=PRIVATE_HEADERS,
    )


@auth_router.get("/signin")
async def signin_page(request: Request, next: str | None = None, error: str | None = None):
    if auth_state(request).session is not None:
        return redirect(request, "/dashboard")
    next_path = next if _is_inapp_path(next) else ""
    form = SignInForm(error=error, next_path=next_path)
    return layout_response(request, "Sign In", form.render(), headers=PRIVATE_HEADERS)


@auth_router.post("/signin")
async def signin_submit(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    next_raw = str(form.get("next") or "")
    next_path = next_raw if _is_inapp_path(next_raw) else ""

    ctx, is_new = _new_or_current_context(request)
    try:
        await ctx.sign_in(email, password)
    except AuthError as exc:
        logger.info("sign-in failed: %s", exc.kind)
        if is_new:
            ctx.stop()
        return _error_page(request, "Sign In", SignInForm(error=exc.kind, values={"email": email}, next_path=next_path), exc.kind)
    return _signed_in_response(request, ctx, is_new, next_path or "/dashboard")


@auth_router.get("/signup")
async def signup_page(request: Request):
    if auth_state(request).session is not None:
        return redirect(request, "/dashboard")
    return layout_response(request, "Sign Up", SignUpForm().render(), headers=PRIVATE_HEADERS)


@auth_router.post("/signup")
async def signup_submit(request: Request):
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    display_name = str(form.get("display_name") or "").strip()

    ctx, is_new = _new_or_current_context(request)
    try:
        await ctx.sign_up(email, password, display_name)
    except AuthError as exc:
        logger.info("sign-up failed: %s", exc.kind)
        if is_new:
            ctx.stop()
        values = {"email": email, "display_name": display_name}
        return _error_page(request, "Sign Up", SignUpForm(error=exc.kind, values=values), exc.kind)
    # New accounts have no profile yet; the guard sends them to completion.
    return _signed_in_response(request, ctx, is_new, "/complete-profile")


@auth_router.get("/signout")
async def signout_page(request: Request):
    content = """
        <section class="auth-card">
            <h1>Sign out</h1>
            <form method="post" action="/signout">
                <button type="submit" class="btn btn-primary">Sign Out</button>
            </form>
        </section>"""
    return layout_response(request, "Sign Out", content, headers=PRIVATE_HEADERS)


@auth_router.post("/signout")
async def signout_submit(request: Request):
    """End the session locally and at the IdP.

    Behavior: The local session and cookie are always cleared, even when the
    IdP end-session call fails (logged, not shown).
    """
    if (rejected := csrf_rejection(request)) is not None:
        return rejected
    ctx = getattr(request.state, "auth_context", None)
    sid = getattr(request.state, "session_id", None)
    if isinstance(ctx, AuthContext):
        try:
            await ctx.sign_out()
        except AuthError as exc:
            logger.warning("sign-out at identity provider failed: %s", exc.kind)
    if sid:
        wiring.SESSION_STORE.delete(sid)
    response = redirect(request, "/")
    clear_cookie(response, SESSION_COOKIE_NAME, environment=config.environment())
    return response


@auth_router.get("/auth/federated")
async def federated_start(request: Request, next: str | None = None):
    """Start the brokered login: PKCE + state + nonce, then redirect to the IdP."""
    provider = wiring.new_identity_provider()
    if not provider.configured:
        return _error_page(request, "Sign In", SignInForm(error=NOT_CONFIGURED), NOT_CONFIGURED)
    code_verifier = OIDCClient.generate_code_verifier()
    rec = wiring.STATE_STORE.create(
        code_verifier=code_verifier,
        redirect=next if _is_inapp_path(next) else None,
    )
    url = provider.federated_authorization_url(
        state=rec.state,
        code_challenge=OIDCClient.code_challenge_s256(code_verifier),
        nonce=rec.nonce,
    )
    return RedirectResponse(url=url, status_code=302, headers=PRIVATE_HEADERS)


@auth_router.get("/auth/callback")
async def federated_callback(request: Request, code: str | None = None, state: str | None = None, error: str | None = None):
    if error or not code or not state:
        logger.info("federated callback without code: error=%s", error or "missing_code")
        return _error_page(request, "Sign In", SignInForm(error=INVALID_CREDENTIALS), INVALID_CREDENTIALS)
    rec = wiring.STATE_STORE.pop_valid(state)
    if rec is None:
        return layout_response(
            request, "Sign In", SignInForm(error="invalid-state").render(), status_code=400, headers=PRIVATE_HEADERS
        )

    ctx, is_new = _new_or_current_context(request)
    try:
        await ctx.sign_in_with_federated_provider(code=code, code_verifier=rec.code_verifier, nonce=rec.nonce)
    except AuthError as exc:
        logger.info("federated sign-in failed: %s", exc.kind)
        if is_new:
            ctx.stop()
        return _error_page(request, "Sign In", SignInForm(error=exc.kind), exc.kind)
    return _signed_in_response(request, ctx, is_new, rec.redirect or "/dashboard")
