from __future__ import annotations

import uuid
from collections.abc import Callable

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url


def _maintenance_engine(url):
    return create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT", future=True)


def create_postgres_test_database(base_url: str) -> tuple[str, Callable[[], None]]:
    """Create a throwaway PostgreSQL database next to `base_url` and return its URL plus a dropper."""
    url = make_url(base_url)
    db_name = f"celltrack_test_{uuid.uuid4().hex[:12]}"

    engine = _maintenance_engine(url)
    with engine.connect() as conn:
        conn.execute(text(f'CREATE DATABASE "{db_name}"'))
    engine.dispose()

    def drop() -> None:
        engine = _maintenance_engine(url)
        with engine.connect() as conn:
            conn.execute(
                text("SELECT pg_terminate_backend(pid) FROM pg_stat_activity WHERE datname = :name"),
                {"name": db_name},
            )
            conn.execute(text(f'DROP DATABASE IF EXISTS "{db_name}"'))
        engine.dispose()

    return url.set(database=db_name).render_as_string(hide_password=False), drop


def migrate(database_url: str, revision: str = "head") -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, revision)


def downgrade(database_url: str, revision: str = "base") -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.downgrade(config, revision)
