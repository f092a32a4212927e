"""
Response helpers shared by the routers and middleware.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from identity_access.access import Access, Granted, Loading, LoadingProfile
from identity_access.context import AuthState

from .auth_utils import ADMIN_TOKEN_COOKIE_NAME
from .components import AccessDenied, Layout, LoadingPlaceholder, NotFound, ProfileLoadingPlaceholder

PRIVATE_HEADERS = {"Cache-Control": "private, no-store"}
PLACEHOLDER_REFRESH_SECONDS = 2


def auth_state(request: Request) -> AuthState:
    state = getattr(request.state, "auth", None)
    return state if isinstance(state, AuthState) else AuthState(is_loading=False)


def layout_response(
    request: Request,
    title: str,
    content: str,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
    auto_refresh_seconds: Optional[int] = None,
) -> HTMLResponse:
    """Render content inside the Layout and return an HTMLResponse.

    Behavior:
        - HTMX requests (`HX-Request`) receive the <main> fragment only.
        - Pages rendered for a signed-in user are `private, no-store`.
    Permissions:
        None. Route handlers must resolve access before calling this helper.
    """
    state = auth_state(request)
    layout = Layout(
        title=title,
        content=content,
        auth=state,
        current_path=request.url.path,
        is_admin=bool(request.cookies.get(ADMIN_TOKEN_COOKIE_NAME)),
        auto_refresh_seconds=auto_refresh_seconds,
    )
    body = layout.render_fragment() if request.headers.get("HX-Request") else layout.render()
    response = HTMLResponse(content=body, status_code=status_code)
    if state.session is not None and not (headers and "Cache-Control" in headers):
        response.headers["Cache-Control"] = "private, no-store"
    if headers:
        for key, value in headers.items():
            response.headers[key] = value
    return response


def redirect(request: Request, url: str, *, status_code: int = 303) -> Response:
    """Redirect; HTMX requests get `HX-Redirect` so the whole page navigates."""
    if request.headers.get("HX-Request"):
        return Response(status_code=204, headers={"HX-Redirect": url, **PRIVATE_HEADERS, "Vary": "HX-Request"})
    return RedirectResponse(url=url, status_code=status_code, headers=PRIVATE_HEADERS)


def access_response(request: Request, access: Access) -> Optional[Response]:
    """Map a non-granted access outcome to its placeholder page.

    Returns None for `Granted`, so callers render the real page.
    """
    if isinstance(access, Granted):
        return None
    if isinstance(access, Loading):
        return layout_response(
            request,
            "Loading",
            LoadingPlaceholder().render(),
            headers=PRIVATE_HEADERS,
            auto_refresh_seconds=PLACEHOLDER_REFRESH_SECONDS,
        )
    if isinstance(access, LoadingProfile):
        return layout_response(
            request,
            "Loading profile",
            ProfileLoadingPlaceholder(retry_href=request.url.path).render(),
            headers=PRIVATE_HEADERS,
            auto_refresh_seconds=PLACEHOLDER_REFRESH_SECONDS,
        )
    status = 401 if access.reason == "unauthenticated" else 403
    content = AccessDenied(
        access.reason,
        required_roles=access.required_roles,
        actual_role=access.actual_role,
        next_path=request.url.path,
    ).render()
    return layout_response(request, "Access denied", content, status_code=status, headers=PRIVATE_HEADERS)


def field_errors(exc: ValidationError) -> dict[str, str]:
    """Map pydantic errors to {field_name: message} for inline display.

    Errors are reported under camelCase aliases; they are keyed back to the
    snake_case names used as form field ids.
    Model-level errors (e.g. a date range) land under "__all__".
    """
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = to_snake(str(loc[0])) if loc else "__all__"
        errors.setdefault(field, "Please check this field.")
    return errors


def not_found_response(request: Request) -> HTMLResponse:
    return layout_response(request, "Page not found", NotFound(request.url.path).render(), status_code=404)
