"""
Placeholder pages shown instead of protected content.

Each access outcome that is not "granted" has exactly one placeholder: still
loading, profile still loading, or denied (with the reason and, for role
mismatches, the required and actual roles).
"""

from typing import Optional, Sequence
from urllib.parse import quote

from .base import Component

ROLE_NAMES = {"student": "Student", "mentor": "Mentor", "admin": "Administrator"}


def _role_name(role: Optional[str]) -> str:
    return ROLE_NAMES.get(role or "", role or "none")


class LoadingPlaceholder(Component):
    def __init__(self, message: str = "Loading your session...") -> None:
        self.message = message

    def render(self) -> str:
        return f"""
        <section class="placeholder placeholder--loading" aria-busy="true">
            <div class="spinner" aria-hidden="true"></div>
            <p role="status">{self.escape(self.message)}</p>
        </section>"""


class ProfileLoadingPlaceholder(LoadingPlaceholder):
    """Shown while the profile could not be resolved yet; the page reloads itself."""

    def __init__(self, retry_href: str = "") -> None:
        super().__init__("Loading your profile...")
        self.retry_href = retry_href

    def render(self) -> str:
        retry = (
            f'<p><a href="{self.escape(self.retry_href)}" class="btn btn-secondary">Try again</a></p>'
            if self.retry_href
            else ""
        )
        return f"""
        <section class="placeholder placeholder--loading" aria-busy="true">
            <div class="spinner" aria-hidden="true"></div>
            <p role="status">{self.escape(self.message)}</p>
            {retry}
        </section>"""


class AccessDenied(Component):
    """Denied placeholder.

    For unauthenticated visitors it links to sign-in; for role mismatches it
    lists the roles the page requires and the role the user has.
    """

    def __init__(
        self,
        reason: str,
        required_roles: Sequence[str] = (),
        actual_role: Optional[str] = None,
        next_path: str = "",
    ) -> None:
        self.reason = reason
        self.required_roles = tuple(required_roles)
        self.actual_role = actual_role
        self.next_path = next_path

    def render(self) -> str:
        if self.reason == "unauthenticated":
            href = f"/signin?next={quote(self.next_path)}" if self.next_path else "/signin"
            return f"""
        <section class="placeholder placeholder--denied">
            <h1>Sign in required</h1>
            <p role="alert">You need to be signed in to view this page.</p>
            <p><a href="{self.escape(href)}" class="btn btn-primary">Sign In</a></p>
        </section>"""
        required = ", ".join(_role_name(r) for r in self.required_roles) or "none"
        return f"""
        <section class="placeholder placeholder--denied">
            <h1>Access denied</h1>
            <p role="alert">You do not have permission to view this page.</p>
            <dl class="role-facts">
                <dt>Required role</dt><dd class="required-roles">{self.escape(required)}</dd>
                <dt>Your role</dt><dd class="actual-role">{self.escape(_role_name(self.actual_role))}</dd>
            </dl>
            <p><a href="/dashboard" class="btn btn-secondary">Go to my dashboard</a></p>
        </section>"""


class NotFound(Component):
    def __init__(self, path: str = "") -> None:
        self.path = path

    def render(self) -> str:
        return f"""
        <section class="placeholder placeholder--not-found">
            <h1>Page not found</h1>
            <p>The page <code>{self.escape(self.path)}</code> does not exist.</p>
            <p><a href="/" class="btn btn-primary">Back to home</a></p>
        </section>"""
