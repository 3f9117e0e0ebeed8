"""
Alembic environment for the practice database.

The URL in alembic.ini is replaced by src.config (DATABASE_URL, normalized for
psycopg2, or the local SQLite default).
"""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from src import config as app_config
from src.models.base import Base
from src.models.therapist import Therapist  # noqa: F401
from src.models.client import Client  # noqa: F401
from src.models.session import Session  # noqa: F401
from src.models.therapy_note import TherapyNote  # noqa: F401

alembic_config = context.config
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

alembic_config.set_main_option("sqlalchemy.url", app_config.database_url())

target_metadata = Base.metadata

# SQLite cannot ALTER most constraints in place
MIGRATION_OPTIONS = {"target_metadata": target_metadata, "render_as_batch": True}


def run_offline() -> None:
    """Emit migration SQL for the configured URL without connecting."""
    context.configure(
        url=alembic_config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **MIGRATION_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Apply migrations over a live connection."""
    engine = engine_from_config(
        alembic_config.get_section(alembic_config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(connection=connection, **MIGRATION_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
