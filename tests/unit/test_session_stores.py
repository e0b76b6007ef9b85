from datetime import datetime, timedelta

import pytest

from app.recon.services.sessions import (
    DatabaseSessionStore,
    InMemorySessionStore,
    SessionPrincipal,
    build_session_store,
)

PRINCIPAL = SessionPrincipal(admin_id=1, username="manager", name="Manager")


class Clock:
    def __init__(self):
        self.value = datetime(2024, 5, 1, 8, 0, 0)

    def __call__(self):
        return self.value


def test_memory_store_round_trip_and_expiry():
    clock = Clock()
    store = InMemorySessionStore(now=clock)
    store.set("sess_a", PRINCIPAL, timedelta(minutes=10))

    assert store.get("sess_a") == PRINCIPAL
    assert store.get("sess_b") is None

    clock.value += timedelta(minutes=10)
    assert store.get("sess_a") is None


def test_memory_store_delete_and_purge():
    clock = Clock()
    store = InMemorySessionStore(now=clock)
    store.set("sess_a", PRINCIPAL, timedelta(minutes=1))
    store.set("sess_b", PRINCIPAL, timedelta(minutes=30))

    store.delete("sess_b")
    clock.value += timedelta(minutes=5)

    assert store.purge_expired() == 1
    assert store.get("sess_a") is None
    assert store.get("sess_b") is None


def test_database_store_round_trip_and_expiry(db_session):
    from app.recon.db.session import SessionLocal
    from tests.recon_helpers import create_admin

    admin = create_admin(db_session)
    principal = SessionPrincipal(admin_id=admin.id, username=admin.username, name=admin.name)
    clock = Clock()
    store = DatabaseSessionStore(SessionLocal, now=clock)

    store.set("sess_a", principal, timedelta(hours=1))
    store.set("sess_b", principal, timedelta(minutes=1))
    assert store.get("sess_a") == principal

    clock.value += timedelta(minutes=2)
    assert store.get("sess_b") is None
    assert store.purge_expired() == 0

    clock.value += timedelta(hours=1)
    assert store.purge_expired() == 1
    assert store.get("sess_a") is None


def test_build_session_store_rejects_unknown_backend():
    assert isinstance(build_session_store("memory", None), InMemorySessionStore)
    with pytest.raises(ValueError):
        build_session_store("redis", None)
