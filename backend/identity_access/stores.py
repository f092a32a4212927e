"""
In-memory stores for the web process: StateStore and SessionStore.

Why: Keep server-side state (PKCE code_verifier, nonce, post-login redirect)
and per-browser auth contexts opaque to the client. Cookies carry only an
opaque session id.

Behavior: The SessionStore owns one AuthContext per browser session. Expired
records are stopped and dropped on access; `close_all()` stops every context
when the application shuts down.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time

from .context import AuthContext


def _now() -> int:
    return int(time.time())


@dataclass
class StateRecord:
    state: str
    code_verifier: str
    nonce: str
    redirect: Optional[str]
    expires_at: int


class StateStore:
    def __init__(self):
        self._data: Dict[str, StateRecord] = {}

    def create(self, *, code_verifier: str, ttl_seconds: int = 900, redirect: Optional[str] = None) -> StateRecord:
        state = secrets.token_urlsafe(24)
        rec = StateRecord(
            state=state,
            code_verifier=code_verifier,
            nonce=secrets.token_urlsafe(24),
            redirect=redirect,
            expires_at=_now() + ttl_seconds,
        )
        self._data[state] = rec
        return rec

    def pop_valid(self, state: str) -> Optional[StateRecord]:
        rec = self._data.pop(state, None)
        if not rec:
            return None
        if rec.expires_at < _now():
            return None
        return rec


@dataclass
class SessionRecord:
    session_id: str
    context: AuthContext
    expires_at: Optional[int] = None


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(self, *, context: AuthContext, ttl_seconds: int = 3600 * 12) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        context.start()
        rec = SessionRecord(session_id=sid, context=context, expires_at=_now() + ttl_seconds)
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self.delete(session_id)
            return None
        return rec

    def delete(self, session_id: str) -> None:
        rec = self._data.pop(session_id, None)
        if rec:
            rec.context.stop()

    def close_all(self) -> None:
        for sid in list(self._data):
            self.delete(sid)

    def __len__(self) -> int:
        return len(self._data)
