"""Shared configuration for the warehouse flows.

``WarehouseSource`` is a Prefect block describing where the delimited source
files live and how they are laid out.  ``get_warehouse_source`` loads a saved
block and falls back to environment variables when no server is reachable.
"""

from __future__ import annotations

import datetime
import os
from enum import StrEnum
from pathlib import Path

from prefect.blocks.core import Block
from pydantic import Field

DEFAULT_FILENAMES: dict[str, str] = {
    "dim_countries": "countries.csv",
    "dim_start_times": "starts.csv",
    "dim_end_times": "ends.csv",
    "dim_gases": "gases.csv",
    "dim_sectors": "sectors.csv",
    "dim_subsectors": "subsectors.csv",
    "emissions": "fact_table.csv",
}


class UnmatchedPolicy(StrEnum):
    """What a join does with a fact row whose dimension key does not resolve."""

    EXCLUDE = "exclude"
    UNKNOWN = "unknown"


class WarehouseSource(Block):
    """Location and layout of the warehouse source files.

    Attributes:
        data_dir: Directory holding one delimited file per table.
        filenames: Table name to filename mapping.
        delimiter: Field terminator.
        first_row: 1-based line number of the first data row.
        max_errors: Rejected rows tolerated per table before the load fails.
    """

    _block_type_name = "ghg-warehouse-source"
    _block_type_slug = "ghg-warehouse-source"
    _description = "Source files for the greenhouse-gas emissions warehouse."

    data_dir: str = Field(default="data", description="Directory of the delimited source files")
    filenames: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FILENAMES),
        description="Filename per warehouse table",
    )
    delimiter: str = Field(default=",", min_length=1, max_length=1, description="Field terminator")
    first_row: int = Field(default=2, ge=1, description="Line number of the first data row")
    max_errors: int = Field(default=10, ge=0, description="Rejected rows allowed per table")

    def path_for(self, table: str) -> Path:
        """Return the source file path for *table*."""
        filename = self.filenames.get(table, DEFAULT_FILENAMES.get(table))
        if filename is None:
            raise KeyError(f"No source file configured for table {table!r}")
        return Path(self.data_dir) / filename


def get_warehouse_source(name: str = "ghg-warehouse") -> WarehouseSource:
    """Load a ``WarehouseSource`` block, falling back to the environment.

    Attempts to load a saved block with the given *name*.  If none is found
    (or the server is unreachable) a block is built from ``GHG_DATA_DIR`` and
    ``GHG_MAX_ERRORS``.

    Args:
        name: Block name to load (default ``"ghg-warehouse"``).

    Returns:
        WarehouseSource instance.
    """
    try:
        return WarehouseSource.load(name)  # type: ignore[return-value]
    except Exception:
        return WarehouseSource(
            data_dir=os.environ.get("GHG_DATA_DIR", "data"),
            max_errors=int(os.environ.get("GHG_MAX_ERRORS", "10")),
        )


def timestamp() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.datetime.now(tz=datetime.UTC).isoformat()
