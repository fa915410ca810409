"""Programmatic Alembic migrations."""

from pathlib import Path

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parents[4] / "alembic.ini"


def run_migrations_sync() -> None:
    """Upgrade the public schema to head. Runs synchronously; wrap in a thread from async code."""
    config = Config(str(ALEMBIC_INI))
    command.upgrade(config, "head")
