import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import cache

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gpxtrace.config import DATABASE_ECHO, DATABASE_URL


@cache
def db_engine() -> AsyncEngine:
    """Get the database engine, created on first use."""
    if DATABASE_URL.startswith('sqlite'):
        kwargs = {}
        if DATABASE_URL.rstrip('/').endswith(('sqlite+aiosqlite:', ':memory:')):
            # in-memory databases live as long as their only connection
            kwargs['poolclass'] = StaticPool

        engine = create_async_engine(
            DATABASE_URL,
            echo=DATABASE_ECHO,
            connect_args={'check_same_thread': False},
            **kwargs,
        )

        @event.listens_for(engine.sync_engine, 'connect')
        def _enable_foreign_keys(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys = ON')
            cursor.close()

    else:
        engine = create_async_engine(
            DATABASE_URL,
            echo=DATABASE_ECHO,
            pool_size=5,
            max_overflow=10,
            pool_recycle=1800,
        )

    logging.debug('Created database engine for %r', engine.url.render_as_string(hide_password=True))
    return engine


@cache
def _sessionmaker() -> async_sessionmaker[AsyncSession]:
    # see for options: https://docs.sqlalchemy.org/en/20/orm/session_api.html#sqlalchemy.orm.Session
    return async_sessionmaker(db_engine(), expire_on_commit=False)


@asynccontextmanager
async def db(write: bool = False, /) -> AsyncIterator[AsyncSession]:
    """
    Get a database session.

    A write session commits when the block exits cleanly and rolls back otherwise.
    """
    async with _sessionmaker()() as session:
        if not write:
            yield session
            return

        async with session.begin():
            yield session


async def db_create_schema() -> None:
    """Create all tables of the trace models."""
    from gpxtrace.models.db import Base  # noqa: PLC0415

    async with db_engine().begin() as conn:
        await conn.run_sync(Base.NoID.metadata.create_all)
