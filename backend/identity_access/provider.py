"""
Identity provider adapter: the only code that talks to Keycloak on behalf of
a signed-in user.

Why:
- Hide the OIDC grants, the admin API and ID-token verification behind a small
  surface (sign in, sign up, federated sign in, sign out, token, subscribe).
- Translate every provider failure into one `AuthError` kind so the UI never
  sees raw HTTP or JOSE errors.

Behavior:
- Holds at most one Session at a time and pushes every change to subscribers.
- An unconfigured adapter (cfg is None) raises `AuthError(not-configured)` for
  every operation except `subscribe`, before any network I/O.
- `subscribe` delivers the current session immediately and never raises; a
  failing subscriber is logged and skipped.

Security: Tokens and passwords are never logged. Only error kinds and codes.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional
import logging
import threading
import time

import requests

from .admin_client import AdminClient
from .domain import Session
from .errors import (
    INVALID_CREDENTIALS,
    NOT_CONFIGURED,
    PROVIDER_UNAVAILABLE,
    WEAK_CREDENTIAL,
    AuthError,
)
from .oidc import OIDCClient, OIDCConfig, TokenRequestError
from .tokens import IDTokenVerificationError, identity_from_claims, verify_id_token

logger = logging.getLogger("aspirelink.identity_access")

MIN_PASSWORD_LENGTH = 6

SessionCallback = Callable[[Optional[Session]], None]


def _map_token_error(exc: TokenRequestError) -> AuthError:
    if exc.status_code >= 500:
        return AuthError(PROVIDER_UNAVAILABLE)
    if exc.error == "invalid_grant" or exc.status_code in (400, 401):
        return AuthError(INVALID_CREDENTIALS)
    return AuthError(PROVIDER_UNAVAILABLE)


class IdentityProvider:
    """Stateful adapter around the OIDC client for one browser session."""

    def __init__(
        self,
        cfg: OIDCConfig | None,
        *,
        oidc_client: OIDCClient | None = None,
        admin_client: AdminClient | None = None,
        verifier: Callable[..., Dict[str, object]] | None = None,
    ) -> None:
        self.cfg = cfg
        self._oidc = oidc_client or (OIDCClient(cfg) if cfg else None)
        self._admin = admin_client or (AdminClient(cfg) if cfg else None)
        self._verify = verifier or verify_id_token
        self._session: Optional[Session] = None
        self._subscribers: List[SessionCallback] = []
        self._lock = threading.RLock()
        # Held across the state write and delivery so subscribers see emits in order.
        self._delivery_lock = threading.RLock()

    @property
    def configured(self) -> bool:
        return self.cfg is not None

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    def _require_config(self) -> None:
        if self.cfg is None:
            raise AuthError(NOT_CONFIGURED)

    # --- Subscription ---------------------------------------------------------

    def subscribe(self, callback: SessionCallback) -> Callable[[], None]:
        """Register `callback` and deliver the current session right away.

        Returns an idempotent unsubscribe function.
        """
        with self._delivery_lock:
            with self._lock:
                self._subscribers.append(callback)
                current = self._session
            self._deliver(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _deliver(self, callback: SessionCallback, session: Optional[Session]) -> None:
        try:
            callback(session)
        except Exception as exc:
            logger.warning("auth subscriber failed: %s", type(exc).__name__)

    def _emit(self, session: Optional[Session]) -> None:
        with self._delivery_lock:
            with self._lock:
                self._session = session
                subscribers = list(self._subscribers)
            for callback in subscribers:
                self._deliver(callback, session)

    # --- Session construction -------------------------------------------------

    def _session_from_tokens(
        self,
        tokens: Dict[str, object],
        *,
        nonce: Optional[str] = None,
        previous: Optional[Session] = None,
    ) -> Session:
        access_token = tokens.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError(PROVIDER_UNAVAILABLE)
        id_token = tokens.get("id_token")
        if isinstance(id_token, str) and id_token:
            try:
                claims = self._verify(id_token=id_token, cfg=self.cfg, nonce=nonce)
            except IDTokenVerificationError as exc:
                logger.warning("ID token rejected: %s", exc.code)
                raise AuthError(PROVIDER_UNAVAILABLE) from exc
            identity = identity_from_claims(claims)
            uid, email, display_name = identity.uid, identity.email, identity.display_name
        elif previous is not None:
            # Refresh responses may omit the ID token; keep the known identity.
            uid, email, display_name = previous.uid, previous.email, previous.display_name
            id_token = previous.id_token
        else:
            raise AuthError(PROVIDER_UNAVAILABLE)
        if not uid:
            raise AuthError(PROVIDER_UNAVAILABLE)
        try:
            expires_in = int(tokens.get("expires_in") or 300)
        except (TypeError, ValueError):
            expires_in = 300
        refresh_token = tokens.get("refresh_token")
        return Session(
            uid=uid,
            email=email,
            display_name=display_name,
            token=access_token,
            expires_at=int(time.time()) + expires_in,
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
            id_token=id_token if isinstance(id_token, str) else None,
        )

    # --- Operations -----------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Session:
        """Email/password sign-in via the direct grant."""
        self._require_config()
        if not (email or "").strip() or not password:
            raise AuthError(INVALID_CREDENTIALS)
        try:
            tokens = self._oidc.password_grant(email=email.strip(), password=password)
        except TokenRequestError as exc:
            logger.info("password grant rejected: %s (%s)", exc.error, exc.status_code)
            raise _map_token_error(exc) from exc
        except (requests.RequestException, ValueError) as exc:
            logger.warning("identity provider unreachable: %s", type(exc).__name__)
            raise AuthError(PROVIDER_UNAVAILABLE) from exc
        session = self._session_from_tokens(tokens)
        self._emit(session)
        return session

    def sign_up(self, email: str, password: str, display_name: str = "") -> Session:
        """Create the account through the admin API, then sign in."""
        self._require_config()
        if not (email or "").strip():
            raise AuthError(INVALID_CREDENTIALS)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(WEAK_CREDENTIAL)
        try:
            self._admin.create_user(email=email.strip(), password=password, display_name=display_name or None)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("admin API unreachable: %s", type(exc).__name__)
            raise AuthError(PROVIDER_UNAVAILABLE) from exc
        return self.sign_in(email, password)

    def federated_authorization_url(self, *, state: str, code_challenge: str, nonce: str) -> str:
        """Authorization URL that sends the browser straight to the brokered IdP."""
        self._require_config()
        return self._oidc.build_authorization_url(
            state=state,
            code_challenge=code_challenge,
            nonce=nonce,
            idp_hint=self.cfg.federated_idp_hint,
        )

    def sign_in_with_federated_provider(self, *, code: str, code_verifier: str, nonce: str) -> Session:
        """Complete a brokered login by exchanging the authorization code."""
        self._require_config()
        try:
            tokens = self._oidc.exchange_code_for_tokens(code=code, code_verifier=code_verifier)
        except TokenRequestError as exc:
            logger.info("code exchange rejected: %s (%s)", exc.error, exc.status_code)
            raise _map_token_error(exc) from exc
        except (requests.RequestException, ValueError) as exc:
            logger.warning("identity provider unreachable: %s", type(exc).__name__)
            raise AuthError(PROVIDER_UNAVAILABLE) from exc
        session = self._session_from_tokens(tokens, nonce=nonce)
        self._emit(session)
        return session

    def sign_out(self) -> None:
        """Clear the local session, then end the IdP session.

        The local session is gone even when the end-session call fails; the
        failure is still reported as `provider-unavailable`.
        """
        self._require_config()
        session = self._session
        self._emit(None)
        if session is None or not session.refresh_token:
            return
        try:
            self._oidc.end_session(refresh_token=session.refresh_token)
        except TokenRequestError as exc:
            logger.warning("end-session rejected: %s (%s)", exc.error, exc.status_code)
            raise AuthError(PROVIDER_UNAVAILABLE) from exc
        except requests.RequestException as exc:
            logger.warning("identity provider unreachable: %s", type(exc).__name__)
            raise AuthError(PROVIDER_UNAVAILABLE) from exc

    def get_token(self) -> Optional[str]:
        """Return a valid access token, refreshing it once when expired.

        Returns None when there is no session or the refresh failed; in the
        latter case subscribers see the session end.
        """
        self._require_config()
        session = self._session
        if session is None:
            return None
        if not session.is_expired():
            return session.token
        if not session.refresh_token:
            self._emit(None)
            return None
        try:
            tokens = self._oidc.refresh(refresh_token=session.refresh_token)
            refreshed = self._session_from_tokens(tokens, previous=session)
        except (TokenRequestError, AuthError, requests.RequestException, ValueError) as exc:
            logger.info("token refresh failed: %s", type(exc).__name__)
            self._emit(None)
            return None
        self._emit(refreshed)
        return refreshed.token


__all__ = ["IdentityProvider", "MIN_PASSWORD_LENGTH"]
