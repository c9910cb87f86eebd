"""SQL statement builders for the supported backends.

CRUD semantics are identical across backends; a dialect only decides how
identifiers are quoted, how parameters are written and how driver column
names are folded back onto the mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .bag import TableMapping
from .exceptions import MappingError


class Dialect(ABC):
    name = ""

    @abstractmethod
    def placeholder(self) -> str:
        """Parameter marker used by the driver."""

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def fold_column(self, column: str) -> str:
        return column.lower()

    def _column_list(self, columns) -> str:
        return ", ".join(self.quote(c) for c in columns)

    def _where_key(self, mapping: TableMapping) -> str:
        return " AND ".join(f"{self.quote(c)} = {self.placeholder()}" for c in mapping.key_columns)

    def build_create_table(self, mapping: TableMapping) -> str:
        columns = ", ".join(f"{self.quote(c)} {mapping.column_type(c)}" for c in mapping.columns)
        return (
            f"CREATE TABLE IF NOT EXISTS {self.quote(mapping.table)} "
            f"({columns}, PRIMARY KEY ({self._column_list(mapping.key_columns)}))"
        )

    def build_insert(self, mapping: TableMapping) -> str:
        markers = ", ".join(self.placeholder() for _ in mapping.columns)
        return (
            f"INSERT INTO {self.quote(mapping.table)} "
            f"({self._column_list(mapping.columns)}) VALUES ({markers})"
        )

    def build_select_by_key(self, mapping: TableMapping) -> str:
        return (
            f"SELECT {self._column_list(mapping.columns)} FROM {self.quote(mapping.table)} "
            f"WHERE {self._where_key(mapping)}"
        )

    def build_select_all(self, mapping: TableMapping) -> str:
        return (
            f"SELECT {self._column_list(mapping.columns)} FROM {self.quote(mapping.table)} "
            f"ORDER BY {self._column_list(mapping.key_columns)}"
        )

    def build_update(self, mapping: TableMapping) -> str:
        """Parameters: value columns in column order, then key columns."""
        if not mapping.value_columns:
            raise MappingError(f"[{mapping.table}] has no non-key columns to update")
        assignments = ", ".join(
            f"{self.quote(c)} = {self.placeholder()}" for c in mapping.value_columns
        )
        return f"UPDATE {self.quote(mapping.table)} SET {assignments} WHERE {self._where_key(mapping)}"

    def build_delete(self, mapping: TableMapping) -> str:
        return f"DELETE FROM {self.quote(mapping.table)} WHERE {self._where_key(mapping)}"


class SqliteDialect(Dialect):
    name = "sqlite"

    def placeholder(self) -> str:
        return "?"


class PgsqlDialect(Dialect):
    name = "postgresql"

    def placeholder(self) -> str:
        return "%s"
