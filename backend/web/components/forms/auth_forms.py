"""
Sign-in, sign-up and admin login forms.

Error kinds from the identity provider adapter are mapped to user-facing
messages here, so routes only pass the kind through.
"""

from typing import Optional

from ..base import Component
from ..notice import Notice
from .fields import TextInputField
from .submit import SubmitButton

AUTH_ERROR_MESSAGES = {
    "invalid-credentials": "The email or password is incorrect.",
    "account-exists": "An account with this email already exists. Please sign in instead.",
    "weak-credential": "Please choose a stronger password (at least 6 characters).",
    "provider-unavailable": "Sign-in is temporarily unavailable. Please try again in a moment.",
    "not-configured": "Sign-in is not available: authentication is not configured.",
    "invalid-state": "Your sign-in attempt expired. Please try again.",
    "session-expired": "You were signed out after a period of inactivity.",
}


def auth_error_message(kind: Optional[str]) -> str:
    return AUTH_ERROR_MESSAGES.get(kind or "", "Something went wrong. Please try again.")


class SignInForm(Component):
    """Email/password sign-in with a federated (Google) shortcut."""

    def __init__(self, error: Optional[str] = None, values: Optional[dict] = None, next_path: str = ""):
        self.error = error
        self.values = values or {}
        self.next_path = next_path

    def render(self) -> str:
        error_html = Notice(auth_error_message(self.error)).render() if self.error else ""
        email = TextInputField("email", "Email", required=True).render(
            value=self.values.get("email", ""), input_type="email", autocomplete="email", class_="form-input"
        )
        password = TextInputField("password", "Password", required=True).render(
            input_type="password", autocomplete="current-password", class_="form-input"
        )
        next_html = (
            f'<input type="hidden" name="next" value="{self.escape(self.next_path)}">' if self.next_path else ""
        )
        return f"""
        <section class="auth-card">
            <h1>Sign in to AspireLink</h1>
            {error_html}
            <form method="post" action="/signin" class="auth-form">
                {next_html}
                {email}
                {password}
                <div class="form-actions">{SubmitButton("Sign In", loading_label="Signing in...").render()}</div>
            </form>
            <div class="auth-divider"><span>or</span></div>
            <a href="/auth/federated" class="btn btn-secondary btn-federated">Continue with Google</a>
            <p class="auth-switch">New to AspireLink? <a href="/signup">Create an account</a></p>
        </section>"""


class SignUpForm(Component):
    def __init__(self, error: Optional[str] = None, values: Optional[dict] = None):
        self.error = error
        self.values = values or {}

    def render(self) -> str:
        error_html = Notice(auth_error_message(self.error)).render() if self.error else ""
        name = TextInputField("display_name", "Full name").render(
            value=self.values.get("display_name", ""), autocomplete="name", class_="form-input"
        )
        email = TextInputField("email", "Email", required=True).render(
            value=self.values.get("email", ""), input_type="email", autocomplete="email", class_="form-input"
        )
        password = TextInputField(
            "password", "Password", required=True, help_text="At least 6 characters."
        ).render(input_type="password", autocomplete="new-password", minlength="6", class_="form-input")
        return f"""
        <section class="auth-card">
            <h1>Create your AspireLink account</h1>
            {error_html}
            <form method="post" action="/signup" class="auth-form">
                {name}
                {email}
                {password}
                <div class="form-actions">{SubmitButton("Sign Up", loading_label="Creating account...").render()}</div>
            </form>
            <div class="auth-divider"><span>or</span></div>
            <a href="/auth/federated" class="btn btn-secondary btn-federated">Continue with Google</a>
            <p class="auth-switch">Already have an account? <a href="/signin">Sign in</a></p>
        </section>"""


class AdminLoginForm(Component):
    def __init__(self, error: Optional[str] = None, username: str = ""):
        self.error = error
        self.username = username

    def render(self) -> str:
        error_html = Notice(self.error).render() if self.error else ""
        username = TextInputField("username", "Username", required=True).render(
            value=self.username, autocomplete="username", class_="form-input"
        )
        password = TextInputField("password", "Password", required=True).render(
            input_type="password", autocomplete="current-password", class_="form-input"
        )
        return f"""
        <section class="auth-card">
            <h1>Admin login</h1>
            {error_html}
            <form method="post" action="/admin/login" class="auth-form">
                {username}
                {password}
                <div class="form-actions">{SubmitButton("Log In", loading_label="Logging in...").render()}</div>
            </form>
        </section>"""
