import itertools
from collections import defaultdict

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import inventory_edge.db.models  # noqa: F401
from inventory_edge.core.errors import RemoteUnavailable
from inventory_edge.core.state import ConnectivityState
from inventory_edge.core.timeutils import iso, utcnow
from inventory_edge.db.base import Base


async def _make_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest.fixture
async def session_factory():
    engine = await _make_engine()
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def other_db():
    """A second, independent local store (e.g. another device)."""
    engine = await _make_engine()
    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        yield session
    await engine.dispose()


class FakeRemote:
    """In-memory stand-in for the remote system of record."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.unavailable = set()
        self.reachable = True
        self._ids = itertools.count(1)

    def _check(self, value):
        if value in self.unavailable:
            raise RemoteUnavailable(f"{value} timed out")

    def seed(self, table, **row):
        row.setdefault("id", f"r{next(self._ids)}")
        self.tables[table].append(row)
        return row

    def find(self, table, column, value):
        return [r for r in self.tables[table] if r.get(column) == value]

    async def select_one(self, table, column, value, columns="id,updated_at"):
        self.calls.append(("select", table, value))
        self._check(value)
        rows = self.find(table, column, value)
        return dict(rows[0]) if rows else None

    async def insert(self, table, row):
        self.calls.append(("insert", table, row))
        self._check(row.get("code") or row.get("name") or row.get("code_scanned"))
        stored = {"id": f"r{next(self._ids)}", "updated_at": iso(utcnow()), **row}
        self.tables[table].append(stored)
        return dict(stored)

    async def update(self, table, row_id, fields):
        self.calls.append(("update", table, row_id, fields))
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(fields)
                row["updated_at"] = iso(utcnow())
                return
        raise AssertionError(f"no remote row {row_id} in {table}")

    async def ping(self):
        self.calls.append(("ping",))
        return self.reachable

    async def get_items_paginated(self, cursor=None, limit=50, direction="next", category_id=None, location_id=None):
        self.calls.append(("rpc", "get_items_paginated", cursor, limit))
        return self.tables["items"][:limit]

    async def search_items(self, query, limit=50, offset=0):
        self.calls.append(("rpc", "search_items", query))
        needle = query.lower()
        hits = [r for r in self.tables["items"] if needle in r.get("name", "").lower()]
        return hits[offset:offset + limit]


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def connectivity():
    return ConnectivityState(online=True, offline_mode=True)
