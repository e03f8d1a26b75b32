# src/reel_stage/scripts/migrate.py
"""Apply Alembic migrations up to head for the configured database."""
from __future__ import annotations

import logging
import os

from alembic import command
from alembic.config import Config

from reel_stage.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    cfg = Config(os.path.join(MIGRATIONS_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade_head(database_url: str | None = None) -> None:
    logger.info("upgrading schema to head")
    command.upgrade(build_config(database_url), "head")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_upgrade_head()
