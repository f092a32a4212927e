"AspireLink web"
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from identity_access.context import AuthContext, AuthState
from identity_access.errors import AuthError
from identity_access.guard import PUBLIC_PATHS, GuardState, evaluate, is_allowed


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via ASPIRELINK_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("ASPIRELINK_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

from . import config  # noqa: E402

# Fail fast on insecure production configuration.
config.ensure_secure_config_on_startup()

from . import wiring  # noqa: E402
from .auth_utils import SESSION_COOKIE_NAME, clear_cookie  # noqa: E402
from .rendering import PRIVATE_HEADERS, not_found_response, redirect  # noqa: E402
from .routes.admin import admin_router  # noqa: E402
from .routes.auth import auth_router  # noqa: E402
from .routes.dashboards import dashboards_router  # noqa: E402
from .routes.onboarding import onboarding_router  # noqa: E402
from .routes.public import public_router  # noqa: E402

logger = logging.getLogger("aspirelink.identity_access")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Unsubscribe every per-browser auth context from its provider.
    wiring.SESSION_STORE.close_all()


app = FastAPI(title="AspireLink", description="Mentorship matching for students and mentors", version="0.1.0", lifespan=lifespan)

# --- Static Files ---------------------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# --- Middleware -------------------------------------------------------------------
# Starlette runs the last registered middleware first. Order per request:
# security headers -> session resolution -> route guard -> route handler.


def _bypasses_session(path: str) -> bool:
    return path.startswith("/static/") or path in ("/health", "/favicon.ico")


@app.middleware("http")
async def route_guard(request: Request, call_next):
    """Send signed-in users without a completed profile to /complete-profile.

    Behavior:
        - Public pages and the onboarding pages always render.
        - Everything else redirects (302, or 204 + HX-Redirect for HTMX).
        - Role checks are not done here; protected pages resolve access
          themselves.
    """
    if _bypasses_session(request.url.path):
        return await call_next(request)
    state = getattr(request.state, "auth", None)
    if not isinstance(state, AuthState):
        return await call_next(request)
    location = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    decision = evaluate(location, state)
    if decision.state is GuardState.REDIRECT_TO_COMPLETION and decision.redirect_to:
        if "HX-Request" in request.headers:
            return Response(
                status_code=204,
                headers={"HX-Redirect": decision.redirect_to, **PRIVATE_HEADERS, "Vary": "HX-Request"},
            )
        return RedirectResponse(url=decision.redirect_to, status_code=302, headers=PRIVATE_HEADERS)
    return await call_next(request)


async def _end_session(ctx: AuthContext, sid: str, reason: str) -> None:
    logger.info("ending session: %s", reason)
    if ctx.snapshot().session is not None:
        try:
            await ctx.sign_out()
        except AuthError as exc:
            logger.warning("sign-out at identity provider failed: %s", exc.kind)
    wiring.SESSION_STORE.delete(sid)


@app.middleware("http")
async def session_resolution(request: Request, call_next):
    """Attach the browser's auth state to `request.state`.

    Behavior:
        - `request.state.auth` is always an `AuthState`; anonymous visitors get
          a resolved, signed-out state.
        - Idle sessions and sessions whose tokens could not be refreshed are
          ended, and the session cookie is cleared on the response. An idle
          session on a protected page goes back to sign-in with a notice.
        - The profile is loaded lazily, once per session (until invalidated).
    """
    if _bypasses_session(request.url.path):
        return await call_next(request)

    request.state.auth = AuthState(is_loading=False)
    request.state.auth_context = None
    request.state.session_id = None
    clear_session_cookie = False

    sid = request.cookies.get(SESSION_COOKIE_NAME)
    rec = wiring.SESSION_STORE.get(sid) if sid else None
    if sid and rec is None:
        clear_session_cookie = True
    elif rec is not None:
        ctx = rec.context
        if ctx.idle_expired():
            await _end_session(ctx, rec.session_id, "idle timeout")
            if request.method == "GET" and not is_allowed(request.url.path, PUBLIC_PATHS):
                response = redirect(request, "/signin?error=session-expired")
                clear_cookie(response, SESSION_COOKIE_NAME, environment=config.environment())
                return response
            clear_session_cookie = True
        elif ctx.snapshot().session is None:
            await _end_session(ctx, rec.session_id, "signed out at provider")
            clear_session_cookie = True
        else:
            state = await ctx.ensure_profile()
            await ctx.touch()
            request.state.auth = state
            request.state.auth_context = ctx
            request.state.session_id = rec.session_id

    response = await call_next(request)
    if clear_session_cookie and SESSION_COOKIE_NAME not in response.headers.get("set-cookie", ""):
        clear_cookie(response, SESSION_COOKIE_NAME, environment=config.environment())
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if config.is_production():
        # No inline scripts or styles in production.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if config.is_production():
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    # HSTS: always on (dev = prod)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Routes ---------------------------------------------------------------------

app.include_router(public_router)
app.include_router(auth_router)
app.include_router(onboarding_router)
app.include_router(dashboards_router)
app.include_router(admin_router)


@app.get("/health")
async def health_check():
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_page(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return not_found_response(request)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))
