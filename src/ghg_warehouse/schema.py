"""In-memory star schema: table definitions, lifecycle, and fact joins.

The warehouse holds six dimension tables and one fact table, each keyed by
its surrogate id.  Tables are bulk loaded once; dropping and recreating the
warehouse is the only way to change them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from prefect import task
from pydantic import BaseModel

from ghg_warehouse.config import UnmatchedPolicy
from ghg_warehouse.models import (
    UNKNOWN,
    Country,
    EmissionRecord,
    ExcludedEmission,
    Gas,
    JoinedEmission,
    JoinResult,
    Sector,
    Subsector,
    TimePoint,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class WarehouseError(Exception):
    """Base class for warehouse errors."""


class WarehouseNotCreatedError(WarehouseError):
    """The warehouse tables do not exist."""


class UnknownTableError(WarehouseError):
    """No table with the given name is defined."""


class DuplicateKeyError(WarehouseError):
    """A bulk insert would violate a primary key."""


# ---------------------------------------------------------------------------
# Table definitions
# ---------------------------------------------------------------------------


class TableSpec(BaseModel):
    """Definition of one warehouse table."""

    name: str
    model: type[BaseModel]
    key: str

    @property
    def columns(self) -> list[str]:
        return list(self.model.model_fields)


TABLES: dict[str, TableSpec] = {
    spec.name: spec
    for spec in [
        TableSpec(name="dim_countries", model=Country, key="country_id"),
        TableSpec(name="dim_start_times", model=TimePoint, key="time_id"),
        TableSpec(name="dim_end_times", model=TimePoint, key="time_id"),
        TableSpec(name="dim_gases", model=Gas, key="gas_id"),
        TableSpec(name="dim_sectors", model=Sector, key="sector_id"),
        TableSpec(name="dim_subsectors", model=Subsector, key="subsector_id"),
        TableSpec(name="emissions", model=EmissionRecord, key="emission_id"),
    ]
}

# dimension name -> (dimension table, fact foreign key, attribute on the dimension row)
DIMENSIONS: dict[str, tuple[str, str, str]] = {
    "country": ("dim_countries", "country_id", "iso_country_code"),
    "start_time": ("dim_start_times", "start_time_id", "calendar_date"),
    "end_time": ("dim_end_times", "end_time_id", "calendar_date"),
    "sector": ("dim_sectors", "sector_id", "sector_name"),
    "subsector": ("dim_subsectors", "subsector_id", "subsector_name"),
    "gas": ("dim_gases", "gas_id", "gas_name"),
}

TIME_DIMENSIONS = frozenset({"start_time", "end_time"})


# ---------------------------------------------------------------------------
# Warehouse
# ---------------------------------------------------------------------------


class Warehouse:
    """The seven warehouse tables, held in memory.

    Call ``create()`` before loading.  ``reset()`` drops and recreates every
    table, which is the only way to discard loaded rows.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[int, Any]] | None = None

    @property
    def created(self) -> bool:
        return self._tables is not None

    def create(self) -> Warehouse:
        """Create empty tables. Existing tables are kept."""
        if self._tables is None:
            self._tables = {name: {} for name in TABLES}
        return self

    def drop(self) -> None:
        """Drop every table and its rows."""
        self._tables = None

    def reset(self) -> Warehouse:
        self.drop()
        return self.create()

    def _table(self, name: str) -> dict[int, Any]:
        if name not in TABLES:
            raise UnknownTableError(f"Unknown table: {name}")
        if self._tables is None:
            raise WarehouseNotCreatedError("Warehouse tables have not been created")
        return self._tables[name]

    def insert_many(self, name: str, rows: Iterable[BaseModel]) -> int:
        """Bulk insert rows into a table.

        The insert is all-or-nothing: a duplicate key within *rows* or
        against existing rows raises ``DuplicateKeyError`` and nothing is
        written.

        Args:
            name: Table name.
            rows: Rows of the table's model.

        Returns:
            Number of rows inserted.
        """
        table = self._table(name)
        spec = TABLES[name]
        staged: dict[int, BaseModel] = {}
        for row in rows:
            if not isinstance(row, spec.model):
                raise TypeError(f"{name} expects {spec.model.__name__}, got {type(row).__name__}")
            key = getattr(row, spec.key)
            if key in table or key in staged:
                raise DuplicateKeyError(f"Duplicate {spec.key}={key} in {name}")
            staged[key] = row
        table.update(staged)
        return len(staged)

    def rows(self, name: str) -> list[Any]:
        """Return the rows of a table in key order."""
        table = self._table(name)
        return [table[k] for k in sorted(table)]

    def get(self, name: str, key: int | None) -> Any | None:
        if key is None:
            return None
        return self._table(name).get(key)

    def table_counts(self) -> dict[str, int]:
        return {name: len(self._table(name)) for name in TABLES}


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@task
def create_warehouse() -> Warehouse:
    """Create an empty warehouse.

    Returns:
        A Warehouse with all tables created.
    """
    warehouse = Warehouse().create()
    print(f"Created warehouse with {len(TABLES)} tables")
    return warehouse


@task
def join_emissions(
    warehouse: Warehouse,
    dimensions: Sequence[str],
    policy: UnmatchedPolicy = UnmatchedPolicy.EXCLUDE,
) -> JoinResult:
    """Join the fact table against the requested dimensions.

    With ``UnmatchedPolicy.EXCLUDE`` a fact row whose key for any requested
    dimension is null or unmatched is dropped and reported in
    ``JoinResult.excluded``.  With ``UnmatchedPolicy.UNKNOWN`` categorical
    dimensions resolve to ``"UNKNOWN"`` instead; time dimensions are still
    excluded.

    Args:
        warehouse: Loaded warehouse.
        dimensions: Dimension names, see ``DIMENSIONS``.
        policy: Handling of unmatched keys.

    Returns:
        JoinResult with joined rows and exclusions.
    """
    unknown = [d for d in dimensions if d not in DIMENSIONS]
    if unknown:
        raise ValueError(f"Unknown dimensions: {', '.join(unknown)}")
    policy = UnmatchedPolicy(policy)

    rows: list[JoinedEmission] = []
    excluded: list[ExcludedEmission] = []
    for fact in warehouse.rows("emissions"):
        attributes: dict[str, Any] = {}
        miss: ExcludedEmission | None = None
        for dim in dimensions:
            table, fk, attr = DIMENSIONS[dim]
            key = getattr(fact, fk)
            match = warehouse.get(table, key)
            if match is not None:
                attributes[dim] = getattr(match, attr)
            elif policy is UnmatchedPolicy.UNKNOWN and dim not in TIME_DIMENSIONS:
                attributes[dim] = UNKNOWN
            else:
                miss = ExcludedEmission(emission_id=fact.emission_id, dimension=dim, key=key)
                break
        if miss is not None:
            excluded.append(miss)
            continue
        rows.append(JoinedEmission(emission_id=fact.emission_id, quantity=fact.quantity, **attributes))

    if excluded:
        logger.warning(
            "Excluded %d of %d emission records joining %s",
            len(excluded),
            len(rows) + len(excluded),
            ", ".join(dimensions),
        )
    print(f"Joined {len(rows)} emission records on {', '.join(dimensions)}")
    return JoinResult(dimensions=list(dimensions), rows=rows, excluded=excluded)
