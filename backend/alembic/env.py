"""
Alembic Migration Environment
===============================

What:  Runs migrations for the blog schema against blog_api's async engine.
How:   The target URL is `-x url=...` when given, otherwise settings.database_url.
       Online runs reuse blog_api.database.Database and drive the synchronous
       migration context through connection.run_sync().

Usage:
    alembic upgrade head
    alembic -x url=sqlite+aiosqlite:///./blog.db upgrade head
    alembic upgrade head --sql        # offline: print SQL only
"""

import asyncio
from logging.config import fileConfig

from alembic import context

import blog_api.models  # noqa: F401  registers users, categories, posts, comments
from blog_api.config import settings
from blog_api.database import Base, Database

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.database_url


def run_migrations_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    database = Database(database_url())
    try:
        async with database.engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await database.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
