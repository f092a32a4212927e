"""
Layout Component for AspireLink

Main layout wrapper that combines navigation, content and footer into a
complete HTML page.
"""

from typing import Optional

from identity_access.context import AuthState

from .base import Component
from .navigation import Navigation


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        auth: Optional[AuthState] = None,
        current_path: str = "/",
        is_admin: bool = False,
        auto_refresh_seconds: Optional[int] = None,
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            auth: Auth snapshot for role-aware navigation (optional)
            current_path: Current URL path for active navigation highlighting
            is_admin: Whether the admin token cookie is present
            auto_refresh_seconds: Reload the page after N seconds (placeholders)
        """
        self.title = title
        self.content = content
        self.auth = auth
        self.current_path = current_path
        self.is_admin = is_admin
        self.auto_refresh_seconds = auto_refresh_seconds

    def render(self) -> str:
        nav_html = Navigation(self.auth, self.current_path, is_admin=self.is_admin).render()
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>

    {nav_html}

    <main id="main-content" class="main-content" role="main">
        {self._render_main_inner()}
    </main>
</body>
</html>"""

    def render_fragment(self) -> str:
        """Return only the children of <main> for HTMX swaps."""
        return self._render_main_inner()

    def _render_head(self) -> str:
        refresh = (
            f'<meta http-equiv="refresh" content="{int(self.auto_refresh_seconds)}">'
            if self.auto_refresh_seconds
            else ""
        )
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="AspireLink connects university students with industry mentors.">
    {refresh}
    <title>{self.escape(self.title)} - AspireLink</title>
    <link rel="stylesheet" href="/static/css/aspirelink.css?v=1">
    """

    def _render_main_inner(self) -> str:
        return f"""
        {self.content}

        <footer class="content-footer" role="contentinfo">
            <p class="text-center text-muted">
                <a href="/privacy">Privacy Policy</a> -
                <a href="/terms">Terms of Service</a> -
                <a href="/accessibility">Accessibility</a> -
                <a href="/code-of-conduct">Code of Conduct</a>
            </p>
        </footer>
        """
