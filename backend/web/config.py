"""
Configuration and startup security checks for AspireLink.

Why: Prevent accidental insecure deployments while keeping local development
permissive. Misconfiguration is detected once, at import/startup, instead of
on the first user request.

Permissions: The caller needs no special privileges. The functions read
environment variables and raise `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import logging
import os

from identity_access.oidc import OIDCConfig

logger = logging.getLogger("aspirelink.web.auth")

DEFAULT_BACKEND_API_BASE_URL = "http://localhost:5000"

_warned_unconfigured = False


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def environment() -> str:
    return (os.getenv("ASPIRELINK_ENV", "dev") or "dev").lower()


def is_production() -> bool:
    return _is_prod_like(environment())


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/stage only):
    - KC_ADMIN_CLIENT_SECRET must be set and not a placeholder (sign-up needs it).
    - Keycloak URLs must use https.
    - BACKEND_API_BASE_URL must be set explicitly.
    - PROFILE_BACKEND=memory is refused (profiles would vanish on restart).
    """

    if not is_production():
        return  # dev/test remain permissive

    kc_secret = (os.getenv("KC_ADMIN_CLIENT_SECRET", "") or "").strip()
    if not kc_secret or kc_secret.upper().startswith("CHANGE_ME"):
        raise SystemExit(
            "Refusing to start: KC_ADMIN_CLIENT_SECRET is unset or a placeholder in production."
        )

    def _must_be_https(url_value: str, var_name: str) -> None:
        if url_value and url_value.strip().lower().startswith("http://"):
            raise SystemExit(
                f"Refusing to start: {var_name} must use https in production (got http)."
            )

    _must_be_https(os.getenv("KC_BASE_URL", ""), "KC_BASE_URL")
    _must_be_https(os.getenv("KC_PUBLIC_BASE_URL", ""), "KC_PUBLIC_BASE_URL")

    if not (os.getenv("BACKEND_API_BASE_URL", "") or "").strip():
        raise SystemExit("Refusing to start: BACKEND_API_BASE_URL must be set in production.")

    if (os.getenv("PROFILE_BACKEND", "memory") or "").strip().lower() == "memory":
        raise SystemExit(
            "Refusing to start: PROFILE_BACKEND=memory is not allowed in production/staging."
        )


def load_oidc_config() -> OIDCConfig | None:
    """Build the OIDC config from the environment.

    Returns None (and warns once) when KC_BASE_URL, KC_REALM or KC_CLIENT_ID
    is missing; the identity provider adapter then reports `not-configured`.
    """
    global _warned_unconfigured
    base_url = (os.getenv("KC_BASE_URL") or "").strip().rstrip("/")
    realm = (os.getenv("KC_REALM") or "").strip()
    client_id = (os.getenv("KC_CLIENT_ID") or "").strip()
    if not (base_url and realm and client_id):
        if not _warned_unconfigured:
            logger.warning("Authentication is not configured (KC_BASE_URL, KC_REALM, KC_CLIENT_ID)")
            _warned_unconfigured = True
        return None
    redirect_uri = os.getenv("REDIRECT_URI", "https://app.localhost/auth/callback")
    public_base = (os.getenv("KC_PUBLIC_BASE_URL") or base_url).rstrip("/")
    return OIDCConfig(
        base_url=base_url,
        realm=realm,
        client_id=client_id,
        redirect_uri=redirect_uri,
        public_base_url=public_base,
        federated_idp_hint=os.getenv("KC_FEDERATED_IDP_HINT", "google") or "google",
    )


def backend_api_base_url() -> str:
    return (os.getenv("BACKEND_API_BASE_URL") or DEFAULT_BACKEND_API_BASE_URL).rstrip("/")


def idle_timeout_seconds() -> int:
    raw = (os.getenv("SESSION_IDLE_TIMEOUT_SECONDS") or "").strip()
    if not raw:
        return 420
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring invalid SESSION_IDLE_TIMEOUT_SECONDS=%r", raw)
        return 420


def profile_backend() -> str:
    return (os.getenv("PROFILE_BACKEND", "memory") or "memory").strip().lower()
