"""Backend-agnostic CRUD over one table, speaking attribute bags."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from .bag import AttributeBag, TableMapping
from .connection import Connector

logger = logging.getLogger(__name__)


class GenericDao:
    """CRUD primitives for the table described by *mapping*.

    Statements are generated once, on construction, by the connector's
    dialect; an inconsistent mapping therefore fails here rather than on
    the first request. The DAO holds no locks: concurrent writers on the
    same key are arbitrated by the table's primary key.
    """

    def __init__(self, connector: Connector, mapping: TableMapping) -> None:
        self.connector = connector
        self.mapping = mapping
        dialect = connector.dialect
        self._sql_insert = dialect.build_insert(mapping)
        self._sql_select_one = dialect.build_select_by_key(mapping)
        self._sql_select_all = dialect.build_select_all(mapping)
        self._sql_update = dialect.build_update(mapping)
        self._sql_delete = dialect.build_delete(mapping)

    @property
    def table(self) -> str:
        return self.mapping.table

    def _to_bag(self, row: Mapping[str, Any]) -> AttributeBag:
        return self.mapping.row_to_bag(row, self.connector.dialect.fold_column)

    async def ensure_table(self) -> None:
        await self.connector.ensure_table(self.mapping)

    async def create(self, bag: Mapping[str, Any]) -> int:
        """Insert *bag* as a new row.

        Raises:
            ConstraintViolation: the primary key already exists.
        """
        row = self.mapping.bag_to_row(bag)
        logger.debug("INSERT into %s key=%s", self.table, self.mapping.key_values(bag))
        return await self.connector.execute(self._sql_insert, list(row.values()))

    async def fetch_one(self, key_filter: Mapping[str, Any]) -> Optional[AttributeBag]:
        """Return the row whose key equals *key_filter*, or ``None``."""
        row = await self.connector.fetch_one(self._sql_select_one, self.mapping.key_values(key_filter))
        if row is None:
            return None
        return self._to_bag(row)

    async def fetch_all(self) -> List[AttributeBag]:
        rows = await self.connector.fetch_all(self._sql_select_all)
        return [self._to_bag(row) for row in rows]

    async def update(self, bag: Mapping[str, Any]) -> int:
        """Replace every non-key column of the row addressed by *bag*'s key.

        A missing row yields 0, not an error; callers that care must check.
        """
        row = self.mapping.bag_to_row(bag)
        params = [row[c] for c in self.mapping.value_columns]
        params.extend(self.mapping.key_values(bag))
        logger.debug("UPDATE %s key=%s", self.table, self.mapping.key_values(bag))
        return await self.connector.execute(self._sql_update, params)

    async def delete(self, key_filter: Mapping[str, Any]) -> int:
        logger.debug("DELETE from %s key=%s", self.table, self.mapping.key_values(key_filter))
        return await self.connector.execute(self._sql_delete, self.mapping.key_values(key_filter))
