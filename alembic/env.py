"""Migration runner for the users/tasks schema; the store URL comes from DATABASE_URL."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import models  # noqa: F401  registers users/tasks on Base.metadata
from config import load_database_url
from database import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

MIGRATION_OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
}


def migrate_as_sql(url: str) -> None:
    context.configure(url=url, literal_binds=True, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def migrate_live(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        # SQLite can only ALTER through table copies
        context.configure(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",
            **MIGRATION_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


database_url = load_database_url()
if context.is_offline_mode():
    migrate_as_sql(database_url)
else:
    migrate_live(database_url)
