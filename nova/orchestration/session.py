"""
Session state for the orchestrator.

A SessionState owns at most one gateway SessionHandle. The handle is
created lazily on the first turn, reused by every later turn, and
dropped after an unrecoverable failure so the next turn starts fresh.
Turns on the same session are serialized through ``turn_lock``.
"""

import logging
import threading
from collections import OrderedDict
from typing import Callable, Optional

from ..gateway import SessionHandle

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "default"
DEFAULT_MAX_SESSIONS = 100


class SessionState:
    """Owned, injectable holder of one conversation handle."""

    def __init__(self, key: str = DEFAULT_SESSION_KEY):
        self.key = key
        self.turn_lock = threading.Lock()
        self._lock = threading.Lock()
        self._handle: Optional[SessionHandle] = None
        self.created_count = 0

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._handle

    @property
    def exists(self) -> bool:
        return self._handle is not None

    def ensure(self, factory: Callable[[], SessionHandle]) -> SessionHandle:
        """Return the current handle, creating it with ``factory`` if absent."""
        with self._lock:
            if self._handle is None:
                self._handle = factory()
                self.created_count += 1
                logger.debug(
                    f"Session '{self.key}' created handle {self._handle.session_id} "
                    f"(#{self.created_count})"
                )
            return self._handle

    def invalidate(self) -> bool:
        """Discard the handle. Returns True if there was one."""
        with self._lock:
            had_handle = self._handle is not None
            if had_handle:
                logger.info(f"Session '{self.key}' discarded handle {self._handle.session_id}")
            self._handle = None
            return had_handle


class SessionStore:
    """
    Sessions keyed by client identity; one shared key by default.

    Client keys are kept in least-recently-used order. Once more than
    ``max_sessions`` client keys are held, the oldest are evicted. The
    default key is never evicted.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._lock = threading.Lock()
        self._default = SessionState(DEFAULT_SESSION_KEY)
        self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()

    def get(self, key: Optional[str] = None) -> SessionState:
        key = key or DEFAULT_SESSION_KEY
        if key == DEFAULT_SESSION_KEY:
            return self._default
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = SessionState(key)
                self._sessions[key] = session
                self._evict_locked()
            else:
                self._sessions.move_to_end(key)
            return session

    def _evict_locked(self) -> None:
        while len(self._sessions) > self.max_sessions:
            key, _ = self._sessions.popitem(last=False)
            # A turn still running on the evicted state keeps its own reference.
            logger.info(f"Evicted idle session '{key}'")

    def reset(self, key: Optional[str] = None) -> bool:
        """Drop the conversation for ``key``. Returns True if one existed."""
        key = key or DEFAULT_SESSION_KEY
        if key == DEFAULT_SESSION_KEY:
            session = self._default
        else:
            with self._lock:
                session = self._sessions.pop(key, None)
            if session is None:
                return False
        with session.turn_lock:
            return session.invalidate()

    def keys(self) -> list[str]:
        """Client session keys, least recently used first."""
        with self._lock:
            return list(self._sessions)
