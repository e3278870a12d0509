"""Schema guardrails for the initial migration."""

from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config

pytestmark = pytest.mark.slow

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"
EXPECTED_TABLES = {"user", "token_blocklist", "project", "task", "tag", "task_tag", "journal_entry"}


@pytest.fixture()
def alembic_config(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", url)
    config.set_main_option("taskflow_env", "testing")
    return config, url


def test_upgrade_creates_every_table(alembic_config):
    config, url = alembic_config
    command.upgrade(config, "head")
    engine = sa.create_engine(url)
    try:
        inspector = sa.inspect(engine)
        assert EXPECTED_TABLES <= set(inspector.get_table_names())
        task_columns = {c["name"] for c in inspector.get_columns("task")}
        assert {"parent_task_id", "completed_at", "metadata"} <= task_columns
        tag_uniques = inspector.get_unique_constraints("tag")
        assert any(set(u["column_names"]) == {"user_id", "name"} for u in tag_uniques)
    finally:
        engine.dispose()


def test_downgrade_drops_tables(alembic_config):
    config, url = alembic_config
    command.upgrade(config, "head")
    command.downgrade(config, "base")
    engine = sa.create_engine(url)
    try:
        assert not EXPECTED_TABLES & set(sa.inspect(engine).get_table_names())
    finally:
        engine.dispose()
