#!/usr/bin/env python3
"""
Session Registry — host → RemoteSession and identity → current host.

Both maps sit behind one lock and are never handed out. A current-session
pointer never refers to a host that is absent from the registry.
"""

import threading
from typing import Dict, List, Optional

from pterogate.core.types import NoActiveSession, NoSuchSession
from pterogate.core.access.identity import normalize_identity

__all__ = ['SessionRegistry']


class SessionRegistry:
    """Thread-safe registry of open sessions and per-operator selection."""

    def __init__(self):
        self._sessions: Dict[str, object] = {}
        self._current: Dict[str, str] = {}
        self.lock = threading.RLock()

    def put(self, host: str, session) -> Optional[object]:
        """Register session under host. Returns the session it replaced.

        The caller is responsible for closing the replaced session.
        """
        with self.lock:
            previous = self._sessions.get(host)
            self._sessions[host] = session
            return previous if previous is not session else None

    def get(self, host: str):
        with self.lock:
            return self._sessions.get(host)

    def remove(self, host: str):
        """Drop host and every pointer to it. Returns the removed session."""
        with self.lock:
            session = self._sessions.pop(host, None)
            for identity in [i for i, h in self._current.items() if h == host]:
                del self._current[identity]
            return session

    def discard(self, host: str, session) -> bool:
        """Remove host only if it still maps to this exact session."""
        with self.lock:
            if self._sessions.get(host) is not session:
                return False
            self.remove(host)
            return True

    def set_current(self, identity: str, host: str) -> None:
        with self.lock:
            if host not in self._sessions:
                raise NoSuchSession(host)
            self._current[normalize_identity(identity)] = host

    def get_current(self, identity: str) -> Optional[str]:
        with self.lock:
            return self._current.get(normalize_identity(identity))

    def clear_current(self, identity: str) -> None:
        with self.lock:
            self._current.pop(normalize_identity(identity), None)

    def switch(self, identity: str, host: str):
        """Point identity at host. Raises NoSuchSession, pointer untouched."""
        with self.lock:
            session = self._sessions.get(host)
            if session is None:
                raise NoSuchSession(host)
            self._current[normalize_identity(identity)] = host
            return session

    def resolve(self, identity: str):
        """Current session for identity, or NoActiveSession."""
        with self.lock:
            host = self._current.get(normalize_identity(identity))
            session = self._sessions.get(host) if host else None
            if session is None:
                raise NoActiveSession()
            return session

    def clear(self) -> List[object]:
        """Empty both maps. Returns every session that was registered."""
        with self.lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._current.clear()
            return sessions

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)
