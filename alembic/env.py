from logging.config import fileConfig
from sqlalchemy import pool, create_engine
from alembic import context

from chaussettes.config import settings
# Importer tous les modèles pour enregistrer les tables dans la MetaData
from chaussettes.db.models import metadata

target_metadata = metadata

# Chargement config Alembic
config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def sync_url() -> str:
    # Transformer URL async en URL sync (enlever +asyncpg / +aiosqlite)
    url = config.get_main_option("sqlalchemy.url") or settings.POSTGRES_URL
    return url.replace("postgresql+asyncpg://", "postgresql://").replace("sqlite+aiosqlite://", "sqlite://")


def run_migrations_offline() -> None:
    context.configure(
        url=sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(
        sync_url(),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
