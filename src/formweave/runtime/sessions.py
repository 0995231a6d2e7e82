"""
Session table.

Each browser session owns one State Store, addressed by an opaque id carried
in a signed cookie so ids cannot be forged or guessed into another session.
Requests of the same session are not serialized: concurrent writes race and
the last one wins.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
from dataclasses import dataclass, field

from formweave.runtime.state import StateStore
from formweave.specs.nodes import ComponentTree

logger = logging.getLogger(__name__)

COOKIE_PREFIX = "fw-session"
DEV_SECRET_KEY = "formweave-dev-secret-key"


def cookie_name(app_id: str | None = None) -> str:
    """Cookie name for a standalone app, or for one hosted app."""
    return f"{COOKIE_PREFIX}-{app_id}" if app_id else COOKIE_PREFIX


def sign_session_id(session_id: str, secret_key: str) -> str:
    """Append an HMAC-SHA256 signature to a session id."""
    sig = hmac.new(secret_key.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256)
    return f"{session_id}.{sig.hexdigest()}"


def verify_session_id(raw: str | None, secret_key: str) -> str | None:
    """Return the session id if the signature checks out, else None."""
    if not raw or "." not in raw:
        return None
    session_id, sig = raw.rsplit(".", 1)
    expected = hmac.new(
        secret_key.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    if not hmac.compare_digest(sig, expected):
        logger.warning("Session cookie signature mismatch (tamper detected)")
        return None
    return session_id


@dataclass
class Session:
    """One client's store plus the tree most recently built for it."""

    id: str
    store: StateStore = field(default_factory=StateStore)
    last_tree: ComponentTree | None = None


class SessionRegistry:
    """Maps session ids to sessions.

    The lock guards insertion and removal only; sessions themselves are
    mutated without locking.
    """

    def __init__(
        self, secret_key: str = DEV_SECRET_KEY, cookie_name: str = COOKIE_PREFIX
    ) -> None:
        self.secret_key = secret_key
        self.cookie_name = cookie_name
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self) -> Session:
        session = Session(id=secrets.token_urlsafe(16))
        with self._lock:
            self._sessions[session.id] = session
        logger.debug("Created session %s", session.id)
        return session

    def get(self, session_id: str | None) -> Session | None:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def resolve(self, cookie: str | None) -> tuple[Session, bool]:
        """Session for a cookie value, creating one when missing or invalid.

        Returns the session and whether it was newly created.
        """
        session = self.get(verify_session_id(cookie, self.secret_key))
        if session is not None:
            return session, False
        return self.create(), True

    def cookie_value(self, session: Session) -> str:
        return sign_session_id(session.id, self.secret_key)

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
