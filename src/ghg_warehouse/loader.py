"""Bulk loader for the delimited warehouse source files.

Each table is loaded from one file whose columns follow the table's column
order.  Rows that fail validation are quarantined with a reason; a table
fails to load only when its rejections exceed the configured maximum.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

from prefect import task
from pydantic import BaseModel, ValidationError

from ghg_warehouse.config import WarehouseSource
from ghg_warehouse.schema import TABLES, TableSpec, Warehouse, WarehouseError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class BulkLoadError(WarehouseError):
    """A table had more rejected rows than the load tolerates."""


class RejectedRow(BaseModel):
    """A source row that could not be loaded."""

    table: str
    line_number: int
    values: list[str]
    reason: str


class ParseResult(BaseModel):
    """Validated records and rejections for one table."""

    table: str
    records: list[Any]
    rejected: list[RejectedRow] = []


class LoadSummary(BaseModel):
    """Outcome of a bulk load."""

    loaded: dict[str, int]
    rejected: list[RejectedRow] = []

    @property
    def rejected_counts(self) -> dict[str, int]:
        counts = {name: 0 for name in self.loaded}
        for row in self.rejected:
            counts[row.table] = counts.get(row.table, 0) + 1
        return counts


def _is_utf8(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _replace_undecodable(value: str) -> str:
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@task
def read_delimited(path: Path, delimiter: str = ",", first_row: int = 2) -> list[tuple[int, list[str]]]:
    """Read a delimited file, skipping lines before *first_row*.

    Args:
        path: File to read.
        delimiter: Field terminator.
        first_row: 1-based line number of the first data row.

    Returns:
        List of (line number, fields) for every non-blank data row.
        Undecodable bytes are kept as surrogate escapes.
    """
    rows: list[tuple[int, list[str]]] = []
    with open(path, newline="", encoding="utf-8", errors="surrogateescape") as f:
        reader = csv.reader(f, delimiter=delimiter)
        for fields in reader:
            if reader.line_num < first_row or not any(field.strip() for field in fields):
                continue
            rows.append((reader.line_num, fields))
    print(f"Read {len(rows)} rows from {Path(path).name}")
    return rows


@task
def parse_rows(spec: TableSpec, raw_rows: list[tuple[int, list[str]]]) -> ParseResult:
    """Validate raw rows into the table's model, quarantining bad rows.

    Fields are matched to columns by position.  Empty fields become null.

    Args:
        spec: Target table definition.
        raw_rows: (line number, fields) pairs from ``read_delimited``.

    Returns:
        ParseResult with records and rejected rows.
    """
    columns = spec.columns
    records: list[Any] = []
    rejected: list[RejectedRow] = []
    for line_number, fields in raw_rows:
        if not all(_is_utf8(value) for value in fields):
            reason = "invalid utf-8 byte sequence"
            values = [_replace_undecodable(value) for value in fields]
            rejected.append(RejectedRow(table=spec.name, line_number=line_number, values=values, reason=reason))
            continue
        if len(fields) != len(columns):
            reason = f"expected {len(columns)} fields, got {len(fields)}"
            rejected.append(RejectedRow(table=spec.name, line_number=line_number, values=fields, reason=reason))
            continue
        data = {col: (value.strip() or None) for col, value in zip(columns, fields, strict=True)}
        try:
            records.append(spec.model(**data))
        except ValidationError as e:
            reason = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            rejected.append(RejectedRow(table=spec.name, line_number=line_number, values=fields, reason=reason))
    return ParseResult(table=spec.name, records=records, rejected=rejected)


@task
def bulk_load(warehouse: Warehouse, source: WarehouseSource) -> LoadSummary:
    """Load every warehouse table from the source directory.

    Dimension tables load before the fact table.  Each table's rows are
    inserted in one batch.

    Args:
        warehouse: A created warehouse.
        source: Location and layout of the source files.

    Returns:
        LoadSummary with loaded counts and rejected rows.

    Raises:
        FileNotFoundError: A table's source file is missing.
        BulkLoadError: A table rejected more than ``source.max_errors`` rows.
    """
    loaded: dict[str, int] = {}
    rejected: list[RejectedRow] = []
    for name, spec in TABLES.items():
        path = source.path_for(name)
        if not path.is_file():
            raise FileNotFoundError(f"Source file for {name} not found: {path}")
        raw = read_delimited.fn(path, source.delimiter, source.first_row)
        parsed = parse_rows.fn(spec, raw)
        if len(parsed.rejected) > source.max_errors:
            raise BulkLoadError(
                f"{name}: {len(parsed.rejected)} rejected rows exceed max_errors={source.max_errors} "
                f"(first: line {parsed.rejected[0].line_number}, {parsed.rejected[0].reason})"
            )
        if parsed.rejected:
            logger.warning("%s: rejected %d rows from %s", name, len(parsed.rejected), path.name)
        loaded[name] = warehouse.insert_many(name, parsed.records)
        rejected.extend(parsed.rejected)

    print(f"Loaded {sum(loaded.values())} rows into {len(loaded)} tables ({len(rejected)} rejected)")
    return LoadSummary(loaded=loaded, rejected=rejected)
