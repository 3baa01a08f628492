"""Query result normalisation shared by the driver backends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Fully materialised output of one statement."""

    columns: tuple[str, ...]
    rows: tuple[tuple[object, ...], ...]
    status: str
    elapsed_ms: int
    row_count: int | None = None

    def as_dicts(self) -> list[dict[str, object]]:
        """Return one mapping per row keyed by column name."""

        return [dict(zip(self.columns, row)) for row in self.rows]


def records_to_result(columns: tuple[str, ...], records: Iterable[Iterable[Any]]) -> dict[str, Any]:
    """Flatten asyncpg records into rows ordered like ``columns``."""

    rows = tuple(tuple(record) for record in records)
    return {"columns": columns, "rows": rows, "row_count": len(rows)}


def cursor_to_result(description: Sequence[Sequence[Any]] | None, rows: Iterable[Sequence[Any]]) -> dict[str, Any]:
    """Flatten DB-API cursor output into columns/rows."""

    columns = tuple(str(column[0]) for column in description or ())
    materialized = tuple(tuple(row) for row in rows)
    return {"columns": columns, "rows": materialized, "row_count": len(materialized)}


__all__ = ["QueryResult", "cursor_to_result", "records_to_result"]
