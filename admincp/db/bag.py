"""Attribute bags and field/column translation tables.

An :class:`AttributeBag` is the storage-neutral record passed between the typed
DAOs and the generic CRUD engine. A :class:`TableMapping` describes how the
fields of one entity type are laid out in one physical table.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .exceptions import MappingError

DEFAULT_COLUMN_TYPE = "VARCHAR(255)"


class AttributeBag(MutableMapping):
    """Ordered field name -> value mapping."""

    def __init__(self, attrs: Optional[Mapping[str, Any]] = None) -> None:
        self._attrs: Dict[str, Any] = dict(attrs) if attrs else {}

    def __getitem__(self, field_name: str) -> Any:
        return self._attrs[field_name]

    def __setitem__(self, field_name: str, value: Any) -> None:
        self._attrs[field_name] = value

    def __delitem__(self, field_name: str) -> None:
        del self._attrs[field_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attrs)

    def __len__(self) -> int:
        return len(self._attrs)

    def __repr__(self) -> str:
        return f"AttributeBag({self._attrs!r})"

    def get_attr(self, field_name: str, default: Any = None) -> Any:
        return self._attrs.get(field_name, default)

    def get_attr_str(self, field_name: str) -> str:
        """Return *field_name* as a string; missing and NULL values become ``""``."""
        value = self._attrs.get(field_name)
        return "" if value is None else str(value)

    def set_attr(self, field_name: str, value: Any) -> "AttributeBag":
        self._attrs[field_name] = value
        return self

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._attrs)


@dataclass(frozen=True)
class TableMapping:
    """Translation tables for one physical table.

    ``columns`` is the ordered column list used for statement generation,
    ``field_to_col`` and ``col_to_field`` are the two directions of the
    name mapping. The three must agree exactly; this is checked on
    construction so a bad definition fails at startup instead of writing
    rows into the wrong columns.
    """

    table: str
    columns: Tuple[str, ...]
    key_columns: Tuple[str, ...]
    field_to_col: Mapping[str, str]
    col_to_field: Mapping[str, str]
    column_types: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.table:
            raise MappingError("Table name must not be empty")
        if len(set(self.columns)) != len(self.columns):
            raise MappingError(f"[{self.table}] duplicate column in column list {self.columns}")
        for field_name, column in self.field_to_col.items():
            if self.col_to_field.get(column) != field_name:
                raise MappingError(
                    f"[{self.table}] field {field_name!r} maps to column {column!r} "
                    f"but that column maps back to {self.col_to_field.get(column)!r}"
                )
        for column, field_name in self.col_to_field.items():
            if self.field_to_col.get(field_name) != column:
                raise MappingError(
                    f"[{self.table}] column {column!r} maps to field {field_name!r} "
                    f"but that field maps to {self.field_to_col.get(field_name)!r}"
                )
        if set(self.columns) != set(self.col_to_field):
            raise MappingError(
                f"[{self.table}] column list {self.columns} does not match "
                f"mapped columns {tuple(self.col_to_field)}"
            )
        if not self.key_columns:
            raise MappingError(f"[{self.table}] at least one key column is required")
        unknown = [c for c in self.key_columns if c not in self.col_to_field]
        if unknown:
            raise MappingError(f"[{self.table}] key columns {unknown} are not mapped")
        unknown = [c for c in self.column_types if c not in self.col_to_field]
        if unknown:
            raise MappingError(f"[{self.table}] column types given for unknown columns {unknown}")

    @classmethod
    def from_fields(
        cls,
        table: str,
        pairs: Sequence[Tuple[str, str]],
        key_fields: Sequence[str],
        column_types: Optional[Mapping[str, str]] = None,
    ) -> "TableMapping":
        """Build the mapping from one ordered list of ``(field, column)`` pairs."""
        field_to_col = dict(pairs)
        col_to_field = {column: field_name for field_name, column in pairs}
        try:
            key_columns = tuple(field_to_col[f] for f in key_fields)
        except KeyError as e:
            raise MappingError(f"[{table}] unknown key field {e.args[0]!r}") from None
        return cls(
            table=table,
            columns=tuple(column for _, column in pairs),
            key_columns=key_columns,
            field_to_col=field_to_col,
            col_to_field=col_to_field,
            column_types=dict(column_types or {}),
        )

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(self.col_to_field[c] for c in self.columns)

    @property
    def key_fields(self) -> Tuple[str, ...]:
        return tuple(self.col_to_field[c] for c in self.key_columns)

    @property
    def value_columns(self) -> Tuple[str, ...]:
        """Non-key columns in column order."""
        return tuple(c for c in self.columns if c not in self.key_columns)

    def column_type(self, column: str) -> str:
        return self.column_types.get(column, DEFAULT_COLUMN_TYPE)

    def bag_to_row(self, bag: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate *bag* into a column -> value dict in column order.

        Fields absent from the bag become ``None``.
        """
        unknown = [f for f in bag if f not in self.field_to_col]
        if unknown:
            raise MappingError(f"[{self.table}] unknown fields {unknown}")
        return {column: bag.get(self.col_to_field[column]) for column in self.columns}

    def row_to_bag(
        self, row: Mapping[str, Any], fold: Optional[Callable[[str], str]] = None
    ) -> AttributeBag:
        """Translate a driver row into a bag, folding column names with *fold* first."""
        folded = {(fold(k) if fold else k): v for k, v in row.items()}
        bag = AttributeBag()
        for column in self.columns:
            if column in folded:
                bag.set_attr(self.col_to_field[column], folded[column])
        return bag

    def key_values(self, key_filter: Mapping[str, Any]) -> Tuple[Any, ...]:
        """Return the key values of *key_filter* (keyed by field name) in key column order."""
        values = []
        for field_name in self.key_fields:
            if field_name not in key_filter:
                raise MappingError(f"[{self.table}] key field {field_name!r} is missing")
            values.append(key_filter[field_name])
        return tuple(values)
