"""
Minimal OIDC client for Keycloak integration.

Why: Keep web framework independent logic in a separate module. The identity
provider adapter calls into this client for every grant it needs (password,
authorization code, refresh) and for the end-session call.

Security: Uses PKCE (S256) parameters for the browser flow; the caller stores
state & code_verifier server-side. Never log the request bodies: they carry
passwords and refresh tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import base64
import hashlib
import os
from urllib.parse import urlencode

# Small indirection to ease monkeypatching in tests
import requests as http

HTTP_TIMEOUT_SECONDS = 5


def http_post(url: str, data: Dict[str, str], headers: Dict[str, str]):
    return http.post(url, data=data, headers=headers, timeout=HTTP_TIMEOUT_SECONDS)


class TokenRequestError(Exception):
    """Raised when the token or logout endpoint answers with a non-2xx status.

    `error` holds the OAuth error code from the body when present
    (e.g. "invalid_grant"), else "http_<status>".
    """

    def __init__(self, error: str, status_code: int):
        super().__init__(error)
        self.error = error
        self.status_code = status_code


@dataclass(frozen=True)
class OIDCConfig:
    base_url: str  # internal base URL (server-to-server), e.g., http://keycloak:8080
    realm: str  # e.g., aspirelink
    client_id: str  # e.g., aspirelink-web
    redirect_uri: str  # e.g., https://app.localhost/auth/callback
    public_base_url: str | None = None  # browser-facing URL
    federated_idp_hint: str = "google"

    @property
    def auth_endpoint(self) -> str:
        base = self.public_base_url or self.base_url
        return f"{base}/realms/{self.realm}/protocol/openid-connect/auth"

    @property
    def token_endpoint(self) -> str:
        # Token exchange happens server-side; use internal base URL
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/token"

    @property
    def logout_endpoint(self) -> str:
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/logout"

    @property
    def issuer(self) -> str:
        return f"{self.base_url}/realms/{self.realm}"

    @property
    def accepted_issuers(self) -> tuple[str, ...]:
        """Issuers we accept: tokens from the brokered browser flow carry the public host."""
        if self.public_base_url and self.public_base_url != self.base_url:
            return (self.issuer, f"{self.public_base_url}/realms/{self.realm}")
        return (self.issuer,)


class OIDCClient:
    def __init__(self, config: OIDCConfig):
        self.cfg = config

    @staticmethod
    def generate_code_verifier(length: int = 64) -> str:
        """Generate a high-entropy URL-safe code_verifier.

        Note: RFC suggests length between 43 and 128 characters.
        """
        return base64.urlsafe_b64encode(os.urandom(length)).decode("ascii").rstrip("=")

    @staticmethod
    def code_challenge_s256(code_verifier: str) -> str:
        """Derive S256 code challenge from verifier."""
        digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

    def build_authorization_url(
        self,
        *,
        state: str,
        code_challenge: str,
        nonce: Optional[str] = None,
        idp_hint: Optional[str] = None,
    ) -> str:
        """Return the authorization URL for the configured realm/client.

        Parameters
        - state: Opaque anti-CSRF token
        - code_challenge: The S256 code challenge derived from the verifier
        - nonce: Optional OIDC replay protection value (recommended)
        - idp_hint: Keycloak broker alias (e.g. "google") to skip the realm
          login page and go straight to the federated provider
        """
        params = {
            "response_type": "code",
            "client_id": self.cfg.client_id,
            "redirect_uri": self.cfg.redirect_uri,
            "scope": "openid email profile",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        if nonce:
            params["nonce"] = nonce
        if idp_hint:
            params["kc_idp_hint"] = idp_hint
        return f"{self.cfg.auth_endpoint}?{urlencode(params)}"

    def _token_request(self, data: Dict[str, str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        resp = http_post(self.cfg.token_endpoint, data=data, headers=headers)
        if resp.status_code != 200:
            raise TokenRequestError(_error_code(resp), resp.status_code)
        return resp.json()

    def exchange_code_for_tokens(self, *, code: str, code_verifier: str) -> Dict[str, str]:
        """Exchange authorization code for tokens at token endpoint."""
        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.cfg.client_id,
                "redirect_uri": self.cfg.redirect_uri,
                "code_verifier": code_verifier,
            }
        )

    def password_grant(self, *, email: str, password: str) -> Dict[str, str]:
        """Direct grant (resource owner password) for the email/password form."""
        return self._token_request(
            {
                "grant_type": "password",
                "client_id": self.cfg.client_id,
                "username": email,
                "password": password,
                "scope": "openid email profile",
            }
        )

    def refresh(self, *, refresh_token: str) -> Dict[str, str]:
        return self._token_request(
            {
                "grant_type": "refresh_token",
                "client_id": self.cfg.client_id,
                "refresh_token": refresh_token,
            }
        )

    def end_session(self, *, refresh_token: str) -> None:
        """Revoke the IdP session bound to `refresh_token` (back-channel logout)."""
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        data = {"client_id": self.cfg.client_id, "refresh_token": refresh_token}
        resp = http_post(self.cfg.logout_endpoint, data=data, headers=headers)
        if resp.status_code not in (200, 204):
            raise TokenRequestError(_error_code(resp), resp.status_code)


def _error_code(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"http_{resp.status_code}"
