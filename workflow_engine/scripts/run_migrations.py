"""
Bring the workflow schema up to the latest Alembic revision.

Databases first created by `create_all()` at startup already hold the
workflow tables but have no `alembic_version` row; those are stamped at the
baseline revision before upgrading so the initial migration is not replayed.

Usage:
    python -m workflow_engine.scripts.run_migrations
"""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from ..core.config import settings
from ..core.errors import log_exception
from ..core.logging_config import setup_logging


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BASELINE_REVISION = "20261018_01"
BASELINE_TABLES = frozenset(
    {
        "workflow_rules",
        "workflow_conditions",
        "workflow_actions",
        "workflow_templates",
        "workflow_execution_history",
        "workflow_action_execution_results",
    }
)

logger = logging.getLogger("workflow_migrations")


def _alembic_config(database_url: str) -> Config:
    ini_path = PROJECT_ROOT / "alembic.ini"
    if not ini_path.is_file():
        raise FileNotFoundError(f"alembic.ini not found at {ini_path}")
    cfg = Config(str(ini_path))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _unversioned_baseline(database_url: str) -> bool:
    engine = create_engine(database_url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    return "alembic_version" not in tables and BASELINE_TABLES <= tables


def run_migrations_to_head(database_url: str | None = None) -> None:
    url = database_url or settings.database_url
    cfg = _alembic_config(url)
    if _unversioned_baseline(url):
        logger.info("Workflow tables present without Alembic state; stamping %s", BASELINE_REVISION)
        command.stamp(cfg, BASELINE_REVISION)
    command.upgrade(cfg, "head")


def main() -> int:
    setup_logging(settings.log_level)
    try:
        run_migrations_to_head()
    except Exception as exc:
        log_exception(logger, "Workflow migrations failed", exc=exc)
        return 1
    logger.info("Workflow schema at head")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
