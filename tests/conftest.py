import importlib
import os
import uuid
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

TEST_SYNC_API_KEY = "test-sync-key"

os.environ["SYNC_API_KEY"] = TEST_SYNC_API_KEY
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "Admin1234!"
os.environ["ONESIGNAL_APP_ID"] = ""
os.environ["ONESIGNAL_REST_API_KEY"] = ""


def create_postgres_test_database(base_url: str) -> tuple[str, Callable[[], None]]:
    url = make_url(base_url)
    db_name = f"test_{uuid.uuid4().hex}"
    admin_url = url.set(database="postgres")

    engine = create_engine(admin_url, isolation_level="AUTOCOMMIT", future=True)
    with engine.connect() as conn:
        conn.execute(text(f'CREATE DATABASE "{db_name}"'))
    engine.dispose()

    def cleanup() -> None:
        drop_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT", future=True)
        with drop_engine.connect() as conn:
            conn.execute(text(f'DROP DATABASE IF EXISTS "{db_name}" WITH (FORCE)'))
        drop_engine.dispose()

    return str(url.set(database=db_name)), cleanup


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url

    from app.recon.core.config import settings
    import app.recon.db.session as session
    import app.main as main

    # One settings instance for the whole run so monkeypatching it reaches every module.
    settings.DATABASE_URL = database_url
    importlib.reload(session)

    return main.create_app(), session


def run_migrations(database_url: str):
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


@pytest.fixture()
def database_url(tmp_path: Path):
    database_url = os.getenv("TEST_DATABASE_URL", "")
    cleanup = None

    if database_url.startswith("postgres"):
        database_url, cleanup = create_postgres_test_database(database_url)
    else:
        db_path = tmp_path / "test.db"
        database_url = f"sqlite+pysqlite:///{db_path}"

    run_migrations(database_url)
    yield database_url

    if cleanup:
        cleanup()


@pytest.fixture()
def client(database_url):
    app, session = _setup_app(database_url)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.recon.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def notifier(client):
    from tests.recon_helpers import RecordingNotifier

    recorder = RecordingNotifier()
    client.app.state.notifier = recorder
    return recorder
