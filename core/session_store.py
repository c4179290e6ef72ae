"""
In-process session store.

Sessions are the only authentication state kept between requests. Each one is
an opaque random id mapped to a small set of string fields, with a fixed
lifetime counted from creation (reads never extend it) and a store-wide
capacity: when the store is full the oldest sessions are evicted, live or not.
Under heavy load a legitimate session can therefore disappear before its TTL.

Every access to the shared mapping and to session fields goes through one
lock. Callers must not do network or database work while holding it; the
public methods only hold it for the dictionary operation itself.
"""
from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import OrderedDict
from enum import Enum
from typing import Callable, Optional

from fastapi import Request

logger = logging.getLogger(__name__)


class SessionKey(str, Enum):
    ID = "id"
    EMAIL = "email"
    VERIFIED = "verified"
    ADMIN = "admin"
    SUBSCRIPTION_POLICY = "subscription_policy"
    INVALID_EMAIL = "invalid_email"
    NOT_VERIFIED_EMAIL = "not_verified_email"
    VERIFICATION_CODE = "verification_code"
    FORGOT_PASSWORD_EMAIL = "forgot_password_email"
    PASSWORD_CHANGE_CODE = "password_change_code"
    NEW_PASSWORD = "new_password"
    EMAIL_CHANGE_CODE = "email_change_code"
    NEW_EMAIL = "new_email"
    DELETE_CODE = "delete_code"


def _key(key: SessionKey | str) -> SessionKey:
    # Raises ValueError for names outside the enum
    return key if isinstance(key, SessionKey) else SessionKey(key)


class UserSession:
    def __init__(self, session_id: str, created_at: float, ttl: float, lock: threading.Lock):
        self.id = session_id
        self.created_at = created_at
        self.ttl = ttl
        self._lock = lock
        self._data: dict[SessionKey, str] = {}

    def expired(self, now: float) -> bool:
        return now >= self.created_at + self.ttl

    def get(self, key: SessionKey | str) -> Optional[str]:
        k = _key(key)
        with self._lock:
            return self._data.get(k)

    def set(self, key: SessionKey | str, value) -> "UserSession":
        k = _key(key)
        with self._lock:
            self._data[k] = str(value)
        return self

    def unset(self, key: SessionKey | str) -> "UserSession":
        k = _key(key)
        with self._lock:
            self._data.pop(k, None)
        return self

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return {k.value: v for k, v in self._data.items()}

    # typed accessors

    @property
    def user_id(self) -> Optional[int]:
        value = self.get(SessionKey.ID)
        return int(value) if value is not None else None

    @property
    def email(self) -> Optional[str]:
        return self.get(SessionKey.EMAIL)

    @property
    def is_verified(self) -> bool:
        return self.get(SessionKey.VERIFIED) == "1"

    @property
    def is_admin(self) -> bool:
        return self.get(SessionKey.ADMIN) == "1"

    @property
    def subscription_policy(self) -> Optional[int]:
        value = self.get(SessionKey.SUBSCRIPTION_POLICY)
        return int(value) if value is not None else None

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<UserSession(id={self.id[:8]!r}...)>"


class SessionStore:
    def __init__(
        self,
        capacity: int = 100,
        ttl: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        # insertion order == creation order
        self._sessions: "OrderedDict[str, UserSession]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _purge_expired(self, now: float) -> None:
        for sid in [sid for sid, s in self._sessions.items() if s.expired(now)]:
            del self._sessions[sid]

    def create(self, ttl: float | None = None) -> UserSession:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            evicted = 0
            while len(self._sessions) >= self.capacity:
                self._sessions.popitem(last=False)
                evicted += 1
            sid = secrets.token_urlsafe(32)
            while sid in self._sessions:
                sid = secrets.token_urlsafe(32)
            session = UserSession(sid, now, self.ttl if ttl is None else ttl, self._lock)
            self._sessions[sid] = session
        if evicted:
            logger.info("Session store full; evicted %d oldest session(s)", evicted)
        return session

    def lookup(self, session_id: str | None) -> Optional[UserSession]:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.expired(self._clock()):
                del self._sessions[session_id]
                return None
            return session

    def delete(self, session: UserSession) -> None:
        with self._lock:
            if self._sessions.get(session.id) is session:
                del self._sessions[session.id]


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store
