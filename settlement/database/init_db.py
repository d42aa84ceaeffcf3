"""Create or upgrade the settlement schema. Run as ``python -m settlement.database.init_db``."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from settlement.core.startup import bootstrap
import settlement.database.db as db_module
from settlement.database.models import Base

REPO_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)


def alembic_config(database_url: str) -> AlembicConfig:
    """Alembic config pointing at this repo's migrations, bound to ``database_url``."""
    alembic_cfg = AlembicConfig(str(REPO_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(REPO_ROOT / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    return alembic_cfg


def init_db() -> None:
    bootstrap()
    database_url = db_module.get_active_database_url()
    command.upgrade(alembic_config(database_url), "head")

    # No-op for tables the migrations already created.
    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info(
        "database.schema.ready",
        extra={
            "event": "database.schema.ready",
            "database_url_scheme": database_url.split("://", 1)[0],
            "tables": sorted(Base.metadata.tables),
        },
    )


if __name__ == "__main__":
    init_db()
