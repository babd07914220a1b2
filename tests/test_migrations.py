from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _alembic_config(database_url: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def test_upgrade_creates_stored_files_table(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'migrated.db'}"

    command.upgrade(_alembic_config(database_url), "head")

    engine = create_engine(database_url)
    inspector = inspect(engine)
    columns = {column["name"] for column in inspector.get_columns("stored_files")}
    indexes = {index["name"] for index in inspector.get_indexes("stored_files")}
    engine.dispose()

    assert columns == {"id", "filename", "size", "file_path", "created_at"}
    assert "idx_stored_files_created_at" in indexes


def test_downgrade_drops_stored_files_table(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = _alembic_config(database_url)

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = create_engine(database_url)
    tables = inspect(engine).get_table_names()
    engine.dispose()

    assert "stored_files" not in tables
