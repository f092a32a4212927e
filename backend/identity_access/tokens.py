"""
ID token verification and claim mapping.

Why: The provider adapter must only ever build a Session from verified
claims. Verification lives here so it can be tested without an adapter.

Behavior:
- Keys come from the realm JWKS. An unknown `kid` triggers one forced refetch
  before the token is rejected (Keycloak rotates keys without notice).
- RS256 only, whatever `alg` the JWKS advertises.
- Issuer may be the internal or the browser-facing realm URL.

Security: Audience, expiry, iat/nbf (with small skew) and, when given, the
nonce of the browser flow are checked. Token contents are never logged.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import time

import requests
from jose import jwt
from jose.exceptions import JOSEError

from .oidc import HTTP_TIMEOUT_SECONDS, OIDCConfig

MAX_CLOCK_SKEW_SECONDS = 5
JWKS_TTL_SECONDS = 300


class IDTokenVerificationError(Exception):
    """Raised when the ID token fails verification; `code` names the check."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    display_name: str


class JWKSCache:
    """Per-realm JWKS, kept for `ttl_seconds` unless a refetch is forced."""

    def __init__(self, ttl_seconds: int = JWKS_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._jwks: Dict[Tuple[str, str], Tuple[float, Dict[str, object]]] = {}

    def get(self, cfg: OIDCConfig, *, refresh: bool = False) -> Dict[str, object]:
        key = (cfg.base_url, cfg.realm)
        cached = self._jwks.get(key)
        if cached and not refresh and cached[0] > time.time():
            return cached[1]
        jwks = _fetch_jwks(cfg)
        self._jwks[key] = (time.time() + self.ttl_seconds, jwks)
        return jwks


def _fetch_jwks(cfg: OIDCConfig) -> Dict[str, object]:
    try:
        resp = requests.get(f"{cfg.issuer}/protocol/openid-connect/certs", timeout=HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise IDTokenVerificationError("jwks_fetch_failed") from exc
    if resp.status_code != 200:
        raise IDTokenVerificationError("jwks_fetch_failed")
    try:
        jwks = resp.json()
    except ValueError as exc:
        raise IDTokenVerificationError("jwks_invalid") from exc
    if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
        raise IDTokenVerificationError("jwks_invalid")
    return jwks


JWKS_CACHE = JWKSCache()


def _key_for(jwks: Dict[str, object], kid: str) -> Optional[Dict[str, object]]:
    return next((k for k in jwks.get("keys") or [] if isinstance(k, dict) and k.get("kid") == kid), None)


def verify_id_token(
    *,
    id_token: str,
    cfg: OIDCConfig,
    cache: JWKSCache | None = None,
    nonce: Optional[str] = None,
) -> Dict[str, object]:
    """Verify `id_token` against the realm keys and return its claims.

    Raises `IDTokenVerificationError` with one of: invalid_id_token,
    missing_kid, unknown_kid, nonce_mismatch, jwks_fetch_failed, jwks_invalid.
    """
    cache = cache or JWKS_CACHE
    try:
        kid = jwt.get_unverified_header(id_token).get("kid")
    except JOSEError as exc:
        raise IDTokenVerificationError("invalid_id_token") from exc
    if not kid:
        raise IDTokenVerificationError("missing_kid")
    key = _key_for(cache.get(cfg), kid) or _key_for(cache.get(cfg, refresh=True), kid)
    if key is None:
        raise IDTokenVerificationError("unknown_kid")

    try:
        claims = jwt.decode(
            id_token,
            key,
            algorithms=["RS256"],
            audience=cfg.client_id,
            issuer=list(cfg.accepted_issuers),
            # Temporal claims are checked below with our own skew.
            options={"verify_exp": False, "verify_iat": False, "verify_nbf": False, "verify_at_hash": False},
        )
    except JOSEError as exc:
        raise IDTokenVerificationError("invalid_id_token") from exc

    now = time.time()
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or exp + MAX_CLOCK_SKEW_SECONDS < now:
        raise IDTokenVerificationError("invalid_id_token")
    for name in ("iat", "nbf"):
        value = claims.get(name)
        if isinstance(value, (int, float)) and value - MAX_CLOCK_SKEW_SECONDS > now:
            raise IDTokenVerificationError("invalid_id_token")
    if nonce is not None and claims.get("nonce") != nonce:
        raise IDTokenVerificationError("nonce_mismatch")
    return claims


def identity_from_claims(claims: Dict[str, object]) -> Identity:
    """Map verified claims to the user identity a Session carries.

    The display name falls back from `name` to `given_name`, then to
    `preferred_username`, then to the local part of the email.
    """
    email = str(claims.get("email") or "")
    display_name = (
        claims.get("name") or claims.get("given_name") or claims.get("preferred_username") or email.split("@")[0]
    )
    return Identity(uid=str(claims.get("sub") or ""), email=email, display_name=str(display_name))


__all__ = ["IDTokenVerificationError", "Identity", "JWKSCache", "verify_id_token", "identity_from_claims"]
