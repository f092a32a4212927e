"""
Keycloak Admin client (minimal) for self-service sign-up.

Design:
- Framework-agnostic, called by the identity provider adapter only.
- Uses requests under the hood; transport errors propagate to the adapter,
  which maps them onto AuthError kinds.

Security:
- Do not log credentials or tokens.
- Uses the client-credentials grant of a confidential admin client
  (KC_ADMIN_CLIENT_ID / KC_ADMIN_CLIENT_SECRET); no admin password grant.
"""

from __future__ import annotations

from typing import Dict
import os

import requests

from .errors import ACCOUNT_EXISTS, PROVIDER_UNAVAILABLE, WEAK_CREDENTIAL, AuthError
from .oidc import OIDCConfig

ADMIN_TIMEOUT_SECONDS = 10


class AdminClient:
    def __init__(self, cfg: OIDCConfig) -> None:
        self.cfg = cfg
        self._admin_client_id = os.getenv("KC_ADMIN_CLIENT_ID", "aspirelink-admin")
        self._admin_client_secret = os.getenv("KC_ADMIN_CLIENT_SECRET", "")

    def _token(self) -> str:
        url = self.cfg.token_endpoint
        data = {
            "grant_type": "client_credentials",
            "client_id": self._admin_client_id,
            "client_secret": self._admin_client_secret,
        }
        r = requests.post(url, data=data, timeout=ADMIN_TIMEOUT_SECONDS)
        if r.status_code != 200:
            raise AuthError(PROVIDER_UNAVAILABLE)
        try:
            body = r.json()
        except ValueError as exc:
            raise AuthError(PROVIDER_UNAVAILABLE) from exc
        token = body.get("access_token", "") if isinstance(body, dict) else ""
        if not token:
            raise AuthError(PROVIDER_UNAVAILABLE)
        return token

    def _admin(self, token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def create_user(self, *, email: str, password: str, display_name: str | None = None) -> None:
        """Create an enabled user with a permanent password.

        Raises AuthError(account-exists) on 409 and AuthError(weak-credential)
        when the realm password policy rejects the password.
        """
        token = self._token()
        url = f"{self.cfg.base_url}/admin/realms/{self.cfg.realm}/users"
        payload = {
            "username": email,
            "email": email,
            "enabled": True,
            "emailVerified": False,
            "credentials": [{"type": "password", "value": password, "temporary": False}],
            **({"firstName": display_name} if display_name else {}),
        }
        r = requests.post(url, headers=self._admin(token), json=payload, timeout=ADMIN_TIMEOUT_SECONDS)
        if r.status_code in (201, 204):
            return
        if r.status_code == 409:
            raise AuthError(ACCOUNT_EXISTS)
        if r.status_code == 400 and _is_password_policy_error(r):
            raise AuthError(WEAK_CREDENTIAL)
        raise AuthError(PROVIDER_UNAVAILABLE)


def _is_password_policy_error(resp) -> bool:
    try:
        body = resp.json()
    except ValueError:
        return False
    if not isinstance(body, dict):
        return False
    message = str(body.get("errorMessage") or body.get("error") or "")
    return "password" in message.lower()
