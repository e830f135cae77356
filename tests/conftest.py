"""Shared fixtures for query builder tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests.models import Base, CommentRecord, PostRecord, ProfileRecord, UserRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy import Select


@pytest.fixture
def sql() -> Callable[[Select[Any]], str]:
    """Render a statement as SQLite SQL with literal values."""

    def render(stmt: Select[Any]) -> str:
        return str(
            stmt.compile(
                dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}
            )
        )

    return render


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async with factory() as session:
        session.add_all(
            [
                UserRecord(
                    id=1, name="Alice", first_name="Alice", last_name="Smith", age=34
                ),
                UserRecord(
                    id=2,
                    name="Bob",
                    first_name="Bob",
                    last_name="Jones",
                    age=25,
                    status="inactive",
                ),
                UserRecord(
                    id=3, name="Carol", first_name="Carol", last_name="Adams", age=41
                ),
            ]
        )
        await session.flush()
        session.add_all(
            [
                PostRecord(id=1, title="Hello", body="first", user_id=1),
                PostRecord(id=2, title="SQLAlchemy tips", body="second", user_id=1),
                PostRecord(id=3, title="Bob's post", body="third", user_id=2),
                ProfileRecord(id=1, bio="Engineer", website="alice.dev", user_id=1),
            ]
        )
        await session.flush()
        session.add_all(
            [
                CommentRecord(id=1, body="Nice", post_id=1),
                CommentRecord(id=2, body="Thanks", post_id=2),
            ]
        )
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as s:
        yield s
