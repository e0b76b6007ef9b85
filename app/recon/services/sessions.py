from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from app.recon.core.security import token_digest
from app.recon.db.models import AdminSession
from app.recon.repos.sessions import AdminSessionRepository


@dataclass(frozen=True)
class SessionPrincipal:
    admin_id: int
    username: str
    name: str | None


class SessionStore(Protocol):
    def get(self, token: str) -> SessionPrincipal | None: ...

    def set(self, token: str, principal: SessionPrincipal, ttl: timedelta) -> None: ...

    def delete(self, token: str) -> None: ...

    def purge_expired(self) -> int: ...


class InMemorySessionStore:
    """Process-local sessions; lost on restart."""

    def __init__(self, now: Callable[[], datetime] = datetime.utcnow) -> None:
        self._now = now
        self._entries: dict[str, tuple[SessionPrincipal, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> SessionPrincipal | None:
        key = token_digest(token)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            principal, expires_at = entry
            if expires_at <= self._now():
                del self._entries[key]
                return None
            return principal

    def set(self, token: str, principal: SessionPrincipal, ttl: timedelta) -> None:
        with self._lock:
            self._entries[token_digest(token)] = (principal, self._now() + ttl)

    def delete(self, token: str) -> None:
        with self._lock:
            self._entries.pop(token_digest(token), None)

    def purge_expired(self) -> int:
        now = self._now()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)


class DatabaseSessionStore:
    """Sessions persisted in ``admin_sessions``, keyed by token digest."""

    def __init__(self, session_factory, now: Callable[[], datetime] = datetime.utcnow) -> None:
        self._session_factory = session_factory
        self._now = now

    def get(self, token: str) -> SessionPrincipal | None:
        with self._session_factory() as db:
            repo = AdminSessionRepository(db)
            record = repo.get(token_digest(token))
            if record is None:
                return None
            if record.expires_at <= self._now():
                repo.delete(record.token_digest)
                return None
            return SessionPrincipal(admin_id=record.admin_id, username=record.username, name=record.name)

    def set(self, token: str, principal: SessionPrincipal, ttl: timedelta) -> None:
        now = self._now()
        with self._session_factory() as db:
            AdminSessionRepository(db).save(
                AdminSession(
                    token_digest=token_digest(token),
                    admin_id=principal.admin_id,
                    username=principal.username,
                    name=principal.name,
                    created_at=now,
                    expires_at=now + ttl,
                )
            )

    def delete(self, token: str) -> None:
        with self._session_factory() as db:
            AdminSessionRepository(db).delete(token_digest(token))

    def purge_expired(self) -> int:
        with self._session_factory() as db:
            return AdminSessionRepository(db).delete_expired(self._now())


def build_session_store(backend: str, session_factory) -> SessionStore:
    if backend == "memory":
        return InMemorySessionStore()
    if backend == "database":
        return DatabaseSessionStore(session_factory)
    raise ValueError(f"Unknown session backend: {backend}")
