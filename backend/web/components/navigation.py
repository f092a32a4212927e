"""
Navigation Component for AspireLink

Role-aware top navigation. Visitors see the marketing pages and sign-in links;
signed-in users additionally see their dashboard and a sign-out control.
Visibility alone never grants access; pages enforce roles themselves.
"""

from typing import Optional, List, Tuple

from identity_access.context import AuthState
from identity_access.domain import DASHBOARD_BY_ROLE

from .base import Component

PUBLIC_LINKS: List[Tuple[str, str]] = [
    ("/", "Home"),
    ("/about", "About"),
    ("/students", "For Students"),
    ("/mentors", "For Mentors"),
    ("/faq", "FAQ"),
    ("/contact", "Contact"),
]

ROLE_LABELS = {
    "student": "Student",
    "mentor": "Mentor",
    "admin": "Administrator",
}


class Navigation(Component):
    """Top navigation bar with role-based entries."""

    def __init__(self, auth: Optional[AuthState] = None, current_path: str = "/", is_admin: bool = False):
        self.auth = auth
        self.current_path = current_path
        self.is_admin = is_admin

    def render(self) -> str:
        links = [self._link(href, text) for href, text in self._items()]
        return f"""
    <header class="site-header">
        <nav class="site-nav" role="navigation" aria-label="Main navigation">
            <a href="/" class="site-brand">AspireLink</a>
            <div class="site-nav-items">
                {''.join(links)}
            </div>
            <div class="site-nav-account">
                {self._render_account()}
            </div>
        </nav>
    </header>"""

    def _items(self) -> List[Tuple[str, str]]:
        items = list(PUBLIC_LINKS)
        auth = self.auth
        if auth is not None and auth.session is not None:
            role = auth.role
            if role and role in DASHBOARD_BY_ROLE:
                items.append((DASHBOARD_BY_ROLE[role], "Dashboard"))
            elif auth.needs_profile_completion:
                items.append(("/complete-profile", "Complete Profile"))
        if self.is_admin:
            items.append(("/admin/dashboard", "Admin"))
        return items

    def _render_account(self) -> str:
        auth = self.auth
        if auth is None or auth.session is None:
            return self._link("/signin", "Sign In") + self._link("/signup", "Sign Up", extra_class="btn btn-primary")
        name = auth.session.display_name or auth.session.email
        role_label = ROLE_LABELS.get(auth.role or "", "Member")
        return f"""
                <span class="user-info">
                    <span class="user-name">{self.escape(name)}</span>
                    <span class="user-role">{self.escape(role_label)}</span>
                </span>
                <form method="post" action="/signout" class="inline-form">
                    <button type="submit" class="btn btn-link">Sign Out</button>
                </form>"""

    def _is_active(self, href: str) -> bool:
        path = self.current_path or "/"
        if href == "/":
            return path == "/"
        return path == href or path.startswith(href + "/")

    def _link(self, href: str, text: str, extra_class: str = "") -> str:
        active = self._is_active(href)
        cls = self.classes("nav-link", extra_class, active=active).strip()
        aria_attr = ' aria-current="page"' if active else ""
        return f'<a href="{self.escape(href)}" class="{cls}"{aria_attr}>{self.escape(text)}</a>'
