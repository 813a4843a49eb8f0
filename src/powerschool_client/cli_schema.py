"""Table layouts for rendering PowerSchool records in the CLI."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
ValueFormatter = Callable[[Any], str]

NESTED_TABLES_KEY = "tables"


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    formatter: ValueFormatter | None = None

    def render(self, row: Row) -> str:
        value: Any | None = None
        for key in self.keys:
            if key in row:
                value = row.get(key)
                if value is not None:
                    break
        if value is None:
            return ""
        if self.formatter:
            formatted = self.formatter(value)
            return "" if formatted is None else str(formatted)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command."""

    title: str
    columns: tuple[Column, ...]


def _list_formatter(*, max_chars: int = 40, sep: str = ", ") -> ValueFormatter:
    def _formatter(value: Any) -> str:
        if isinstance(value, (list, tuple)):
            s = sep.join(str(v) for v in value)
        else:
            s = str(value)
        return s if len(s) <= max_chars else s[: max_chars - 1] + "…"

    return _formatter


def flatten_record(record: Row) -> dict[str, Any]:
    """Flatten one record into ``column -> value``.

    Table and PowerQuery records carry their columns under
    ``tables.<table_name>``; those become ``<table_name>.<column>``. Other
    nested mappings are prefixed with their own key.
    """

    flat: dict[str, Any] = {}
    for key, value in record.items():
        if key == NESTED_TABLES_KEY and isinstance(value, Mapping):
            for table_name, columns in value.items():
                if isinstance(columns, Mapping):
                    for column, cell in columns.items():
                        flat[f"{table_name}.{column}"] = cell
                else:
                    flat[str(table_name)] = columns
            continue
        if isinstance(value, Mapping):
            for sub_key, cell in value.items():
                flat[f"{key}.{sub_key}"] = cell
            continue
        flat[key] = value
    return flat


def record_view(title: str, rows: Sequence[Row]) -> TableView:
    """Build a view whose columns are the union of the row keys, in first-seen order."""

    headers: dict[str, None] = {}
    for row in rows:
        for key in row:
            headers.setdefault(key, None)
    columns = tuple(
        Column(header, keys=(header,), formatter=_list_formatter()) for header in headers
    )
    return TableView(title=title, columns=columns)
