"""
Error taxonomy for the identity_access bounded context.

Each error carries a machine-readable `kind`/`code` so the web adapter can map
it to a user-facing message without string matching on exception text.
"""

from __future__ import annotations

INVALID_CREDENTIALS = "invalid-credentials"
ACCOUNT_EXISTS = "account-exists"
WEAK_CREDENTIAL = "weak-credential"
PROVIDER_UNAVAILABLE = "provider-unavailable"
NOT_CONFIGURED = "not-configured"

AUTH_ERROR_KINDS = frozenset(
    {INVALID_CREDENTIALS, ACCOUNT_EXISTS, WEAK_CREDENTIAL, PROVIDER_UNAVAILABLE, NOT_CONFIGURED}
)


class AuthError(Exception):
    """Raised by the identity provider adapter when an auth operation fails."""

    def __init__(self, kind: str):
        if kind not in AUTH_ERROR_KINDS:
            raise ValueError(f"unknown auth error kind: {kind}")
        super().__init__(kind)
        self.kind = kind


class ProfileLoadError(Exception):
    """Raised when a user profile is missing required data or malformed."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class ProfileUnavailableError(Exception):
    """Raised when the profile source cannot be reached (transient)."""

    def __init__(self, status: int = 0):
        super().__init__(f"profile_unavailable:{status}")
        self.status = status


__all__ = [
    "AuthError",
    "ProfileLoadError",
    "ProfileUnavailableError",
    "AUTH_ERROR_KINDS",
    "INVALID_CREDENTIALS",
    "ACCOUNT_EXISTS",
    "WEAK_CREDENTIAL",
    "PROVIDER_UNAVAILABLE",
    "NOT_CONFIGURED",
]
