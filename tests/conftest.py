import importlib
import os

import pytest
from fastapi.testclient import TestClient

from tests.db_utils import create_postgres_test_database, migrate


@pytest.fixture()
def database_url(tmp_path):
    """A migrated, empty database: a throwaway Postgres one when DATABASE_URL points at Postgres."""
    base_url = os.getenv("DATABASE_URL", "")
    drop = None
    if base_url.startswith("postgres"):
        url, drop = create_postgres_test_database(base_url)
    else:
        url = f"sqlite+pysqlite:///{tmp_path / 'celltrack.db'}"

    migrate(url)
    yield url

    if drop is not None:
        drop()


@pytest.fixture()
def client(database_url, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("SECRET_KEY", "test-secret")

    # settings and the engine are built at import time
    import app.celltrack.core.config as config
    import app.celltrack.db.session as session
    import app.main as main

    for module in (config, session, main):
        importlib.reload(module)

    with TestClient(main.create_app()) as test_client:
        yield test_client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.celltrack.db.session import SessionLocal

    with SessionLocal() as db:
        yield db


@pytest.fixture()
def world(client, db_session):
    from tests.celltrack_helpers import build_world

    return build_world(client, db_session)
