"""
Shared authentication utilities.

Why:
    Keep cookie policy in one place for the user session cookie and the admin
    token cookie, so both carry the same hardened flags.

Design:
    The helpers are framework-light: `cookie_opts` is pure; the setters only
    touch the given response.
"""

from __future__ import annotations

from starlette.responses import Response

SESSION_COOKIE_NAME = "aspirelink_session"
ADMIN_TOKEN_COOKIE_NAME = "aspirelink_admin_token"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # top-level OIDC redirects must still carry the cookie
    """
    return {"secure": True, "samesite": "lax"}


def set_cookie(response: Response, key: str, value: str, *, environment: str, max_age: int | None = None) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age,
    )


def clear_cookie(response: Response, key: str, *, environment: str) -> None:
    opts = cookie_opts(environment)
    response.delete_cookie(key=key, path="/", secure=opts["secure"], httponly=True, samesite=opts["samesite"])
