"""
This file contains shared fixtures for the test suite.
"""

import os

import pytest
import pytest_asyncio

# Set env vars before any application modules are imported
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DB_SQLITE_NAME", ":memory:")
os.environ.setdefault("PYTHONIOENCODING", "utf-8")

from admincp.db.connection import SqliteConnector
from admincp.db.factory import build_storage
from admincp.db.generic_dao import GenericDao
from admincp.db.schema import group_mapping


@pytest_asyncio.fixture
async def connector():
    """Opened in-memory SQLite connector, closed after the test."""
    conn = SqliteConnector(":memory:", pool_size=2, timeout=5)
    await conn.open()
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def storage(connector):
    """Connector with both tables created and the typed DAOs wired up."""
    yield await build_storage(connector, "test")


@pytest.fixture
def group_dao(storage):
    return storage.group_dao


@pytest.fixture
def user_dao(storage):
    return storage.user_dao


@pytest_asyncio.fixture
async def group_generic(connector):
    """GenericDao over a freshly created group table."""
    dao = GenericDao(connector, group_mapping("gen_group"))
    await dao.ensure_table()
    return dao
