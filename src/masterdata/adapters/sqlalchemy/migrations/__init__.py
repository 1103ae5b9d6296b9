"""Alembic entry points for the reconciliation schema."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from masterdata.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent


def build_config(*, database_uri: str | None = None) -> Config:
    """Return an Alembic config running the revisions bundled with the package."""

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the schema to the latest revision.

    With ``engine`` the upgrade runs on one of its connections, so in-memory
    SQLite databases keep the migrated schema.
    """

    if engine is None:
        uri = database_uri or get_database_config().uri
        command.upgrade(build_config(database_uri=uri), "head")
        return
    config = build_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
    log.debug("Schema on %s upgraded to head", engine.url)


def head_revision() -> str | None:
    return ScriptDirectory.from_config(build_config()).get_current_head()


def current_revision(engine: Engine) -> str | None:
    """Return the revision stamped on ``engine``'s database, ``None`` if unmigrated."""

    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()
