"""
Auth context: the single observer of the identity provider for one browser
session, plus the cached application profile.

Why:
- Pages, the route guard and the role gate read one immutable snapshot instead
  of each talking to the provider.
- The provider subscription callback is the only writer of session state, so
  explicit sign-in/sign-out calls and background token refreshes cannot race
  each other into inconsistent state.

Behavior:
- `start()` subscribes exactly once; `stop()` unsubscribes.
- `is_loading` stays True until the first provider callback.
- `ensure_profile()` fetches the profile once per session uid. A malformed
  profile resolves to "no profile"; an unreachable backend leaves it
  unresolved so the next request retries.
- Profile calls use a fresh access token; an expired one is refreshed first.
- Watchers run after the state lock is released and may call back in.
- Inactivity: `touch()` records activity, `idle_expired()` reports when the
  session has been idle longer than the configured timeout.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, List, Optional
import asyncio
import logging
import threading
import time

from .domain import Session, UserProfile
from .errors import ProfileLoadError, ProfileUnavailableError
from .profiles import ProfileRepository
from .provider import IdentityProvider

logger = logging.getLogger("aspirelink.identity_access")

DEFAULT_IDLE_TIMEOUT_SECONDS = 420
TOUCH_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class AuthState:
    """Immutable view of the auth context at one point in time."""

    session: Optional[Session] = None
    profile: Optional[UserProfile] = None
    is_loading: bool = True
    profile_resolved: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def role(self) -> Optional[str]:
        return self.profile.role if self.profile else None

    @property
    def needs_profile_completion(self) -> bool:
        """True when a signed-in user has no completed profile.

        Stays False until the profile is resolved so a slow profile fetch
        never triggers a completion redirect.
        """
        if self.session is None or not self.profile_resolved:
            return False
        return self.profile is None or not self.profile.completed

    def has_role(self, *roles: str) -> bool:
        return self.profile is not None and self.profile.role in roles


StateWatcher = Callable[[AuthState], None]


class AuthContext:
    def __init__(
        self,
        provider: IdentityProvider,
        profiles: ProfileRepository,
        *,
        idle_timeout_seconds: int = DEFAULT_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.provider = provider
        self._profiles = profiles
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock
        self._state = AuthState()
        self._lock = threading.Lock()
        self._watchers: List[StateWatcher] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._last_activity = clock()
        self._last_touch_sent = 0.0

    # --- Lifecycle ------------------------------------------------------------

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.provider.subscribe(self._on_session)

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    # --- State ----------------------------------------------------------------

    def snapshot(self) -> AuthState:
        return self._state

    def watch(self, callback: StateWatcher) -> Callable[[], None]:
        """Call `callback` with every new snapshot. Returns an unwatch function."""
        self._watchers.append(callback)

        def unwatch() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)

        return unwatch

    def _notify(self, state: AuthState) -> None:
        for callback in list(self._watchers):
            try:
                callback(state)
            except Exception as exc:
                logger.warning("auth watcher failed: %s", type(exc).__name__)

    def _on_session(self, session: Optional[Session]) -> None:
        with self._lock:
            prev = self._state
            same_user = session is not None and prev.session is not None and prev.session.uid == session.uid
            if same_user:
                state = replace(prev, session=session, is_loading=False)
            else:
                state = AuthState(session=session, is_loading=False)
                self._last_activity = self._clock()
            self._state = state
        self._notify(state)

    # --- Profile --------------------------------------------------------------

    async def _fresh_session(self) -> Optional[Session]:
        """Current session with a usable access token, refreshed when expired.

        A failed refresh ends the session through the provider callback.
        """
        session = self._state.session
        if session is not None and session.is_expired():
            await self.get_token()
            session = self._state.session
        return session

    async def ensure_profile(self) -> AuthState:
        """Fetch the profile for the current session if not resolved yet."""
        state = self._state
        if state.session is None or state.profile_resolved:
            return state
        session = await self._fresh_session()
        if session is None:
            return self._state
        try:
            profile = await self._profiles.get(session)
        except ProfileLoadError as exc:
            logger.warning("profile for session rejected: %s", exc.code)
            profile = None
        except ProfileUnavailableError:
            return self._state
        with self._lock:
            current = self._state
            if current.session is None or current.session.uid != session.uid:
                return current
            state = replace(current, profile=profile, profile_resolved=True)
            self._state = state
        self._notify(state)
        return state

    def invalidate_profile(self) -> None:
        """Drop the cached profile so the next `ensure_profile` refetches it."""
        with self._lock:
            state = replace(self._state, profile=None, profile_resolved=False)
            self._state = state
        self._notify(state)

    # --- Activity -------------------------------------------------------------

    async def touch(self) -> None:
        """Record user activity and report it to the profile store (throttled)."""
        now = self._clock()
        self._last_activity = now
        session = self._state.session
        if session is None or not self._state.profile:
            return
        if now - self._last_touch_sent < TOUCH_INTERVAL_SECONDS:
            return
        self._last_touch_sent = now
        session = await self._fresh_session()
        if session is None:
            return
        try:
            await self._profiles.touch_last_active(session)
        except ProfileUnavailableError:
            logger.info("last-active update skipped: profile backend unavailable")

    def idle_expired(self) -> bool:
        if self._state.session is None or self._idle_timeout <= 0:
            return False
        return self._clock() - self._last_activity > self._idle_timeout

    # --- Provider operations --------------------------------------------------
    # The provider uses blocking HTTP; results reach the state via _on_session.

    async def sign_in(self, email: str, password: str) -> Session:
        return await asyncio.to_thread(self.provider.sign_in, email, password)

    async def sign_up(self, email: str, password: str, display_name: str = "") -> Session:
        return await asyncio.to_thread(self.provider.sign_up, email, password, display_name)

    async def sign_in_with_federated_provider(self, *, code: str, code_verifier: str, nonce: str) -> Session:
        return await asyncio.to_thread(
            lambda: self.provider.sign_in_with_federated_provider(
                code=code, code_verifier=code_verifier, nonce=nonce
            )
        )

    async def sign_out(self) -> None:
        await asyncio.to_thread(self.provider.sign_out)

    async def get_token(self) -> Optional[str]:
        if not self.provider.configured:
            return None
        return await asyncio.to_thread(self.provider.get_token)


__all__ = ["AuthContext", "AuthState", "DEFAULT_IDLE_TIMEOUT_SECONDS"]
