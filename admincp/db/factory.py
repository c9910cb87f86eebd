"""Backend selection: build the connector, the tables and the typed DAOs."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from admincp.config import DatabaseSettings

from .connection import Connector, PgsqlConnector, SqliteConnector
from .generic_dao import GenericDao
from .repositories import GroupDao, UserDao
from .schema import group_mapping, group_table, user_mapping, user_table

logger = logging.getLogger(__name__)

SQLITE_TYPES = ("sqlite",)
PGSQL_TYPES = ("postgresql", "pgsql", "postgres")


@dataclass
class Storage:
    """The process-wide connector and the DAOs sharing it."""

    connector: Connector
    group_dao: GroupDao
    user_dao: UserDao

    async def close(self) -> None:
        await self.connector.close()


def create_connector(settings: DatabaseSettings) -> Connector:
    db_type = settings.type.strip().lower()
    if db_type in SQLITE_TYPES:
        return SqliteConnector.from_directory(
            settings.sqlite_root,
            settings.sqlite_name,
            pool_size=settings.pool_size,
            timeout=settings.pool_timeout,
        )
    if db_type in PGSQL_TYPES:
        return PgsqlConnector(settings.pgsql_url, pool_size=settings.pool_size, timeout=settings.pool_timeout)
    raise ValueError(f"unsupported database type: {settings.type}")


async def build_storage(connector: Connector, table_prefix: str) -> Storage:
    """Open *connector*, create both tables if needed and wire up the DAOs."""
    await connector.open()
    group_generic = GenericDao(connector, group_mapping(group_table(table_prefix)))
    user_generic = GenericDao(connector, user_mapping(user_table(table_prefix)))
    await group_generic.ensure_table()
    await user_generic.ensure_table()
    return Storage(connector=connector, group_dao=GroupDao(group_generic), user_dao=UserDao(user_generic))


async def open_storage(settings: DatabaseSettings) -> Storage:
    connector = create_connector(settings)
    logger.info("Using %s storage backend", connector.dialect.name)
    try:
        return await build_storage(connector, settings.table_prefix)
    except Exception:
        await connector.close()
        raise
