from __future__ import annotations

import csv
import logging
import re
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)

ID_FIELDS = ("cluster",)

_NUMERIC_PATTERN = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_INTEGER_PATTERN = re.compile(r"^\s*-?\d+\s*$")
_BOOLEAN_VALUES = {"true": True, "false": False}
# numerals at or beyond this magnitude are not exact floats and stay text
_MAX_EXACT_NUMBER = 2**53


@dataclass(slots=True)
class RecordTable:
    """A parsed header-based table with typed cell values."""

    fields: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
    source: str | None = None

    def __len__(self) -> int:
        return len(self.rows)

    def require_fields(self, *names: str) -> None:
        missing = [name for name in names if name not in self.fields]
        if missing:
            where = f" in {self.source}" if self.source else ""
            raise ValueError(f"Table is missing required column(s){where}: {', '.join(missing)}")


def coerce_cell(raw_value: str | None) -> Any:
    """Type one CSV cell: blank -> None, true/false -> bool, numerals -> int/float."""

    if raw_value is None:
        return None
    if raw_value.strip() == "":
        return None

    lowered = raw_value.strip().lower()
    if lowered in _BOOLEAN_VALUES:
        return _BOOLEAN_VALUES[lowered]

    return _coerce_number(raw_value)


def coerce_cluster_id(raw_value: Any) -> Any:
    """Type a cluster identifier: numerals become numbers, everything else stays text.

    Identifiers are never booleans, so ``true`` cannot collide with cluster ``1``.
    """

    if isinstance(raw_value, bool):
        return "true" if raw_value else "false"
    if not isinstance(raw_value, str):
        return raw_value

    stripped = raw_value.strip()
    if not stripped:
        return None
    return _coerce_number(stripped)


def parse_records(
    lines: Iterable[str],
    *,
    delimiter: str = ",",
    source: str | None = None,
    id_fields: Collection[str] = ID_FIELDS,
) -> RecordTable:
    """Parse CSV text lines into a RecordTable, skipping blank lines.

    Columns named in ``id_fields`` are typed with :func:`coerce_cluster_id`.
    """

    reader = csv.DictReader(lines, delimiter=delimiter)
    try:
        header = reader.fieldnames
        if not header:
            raise ValueError(f"Table has no header row: {source or '<memory>'}")

        fields = [name.strip() for name in header]
        rows: list[dict[str, Any]] = []
        for raw_row in reader:
            if _is_blank(raw_row):
                continue
            row = {
                name.strip(): _coerce_column(name.strip(), value, id_fields)
                for name, value in raw_row.items()
                if name is not None and not isinstance(value, list)
            }
            rows.append(row)
    except csv.Error as exc:
        raise ValueError(f"Failed to parse table {source or '<memory>'}: {exc}") from exc

    return RecordTable(fields=fields, rows=rows, source=source)


def load_record_table(
    path: str | Path,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
    id_fields: Collection[str] = ID_FIELDS,
) -> RecordTable:
    """Read and type a CSV file from disk."""

    source_path = Path(path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Table file not found: {source_path}")

    try:
        with source_path.open("r", encoding=encoding, newline="") as handle:
            table = parse_records(handle, delimiter=delimiter, source=str(source_path), id_fields=id_fields)
    except UnicodeDecodeError as exc:
        raise ValueError(f"Table {source_path} is not valid {encoding} text: {exc}") from exc

    logger.debug("Parsed %d rows with %d columns from %s", len(table), len(table.fields), source_path)
    return table


def _coerce_column(name: str, raw_value: str | None, id_fields: Collection[str]) -> Any:
    if name in id_fields:
        return coerce_cluster_id(raw_value)
    return coerce_cell(raw_value)


def _coerce_number(raw_value: str) -> Any:
    if _INTEGER_PATTERN.match(raw_value):
        value: int | float = int(raw_value)
    elif _NUMERIC_PATTERN.match(raw_value):
        value = float(raw_value)
    else:
        return raw_value

    if not -_MAX_EXACT_NUMBER < value < _MAX_EXACT_NUMBER:
        return raw_value
    return value


def _is_blank(raw_row: dict[str | None, Any]) -> bool:
    return all(
        value is None or (isinstance(value, str) and not value.strip())
        for value in raw_row.values()
    )
