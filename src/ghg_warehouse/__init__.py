"""ghg-warehouse -- greenhouse-gas emissions star schema and reports."""

from ghg_warehouse.config import UnmatchedPolicy, WarehouseSource, get_warehouse_source
from ghg_warehouse.loader import BulkLoadError, LoadSummary, bulk_load
from ghg_warehouse.reports import (
    build_report_definitions,
    compare_to_latest,
    cube_emissions,
    cumulative_contribution,
    moving_average,
    rank_countries,
)
from ghg_warehouse.schema import (
    DuplicateKeyError,
    UnknownTableError,
    Warehouse,
    WarehouseError,
    WarehouseNotCreatedError,
    create_warehouse,
    join_emissions,
)

__all__ = [
    "BulkLoadError",
    "DuplicateKeyError",
    "LoadSummary",
    "UnknownTableError",
    "UnmatchedPolicy",
    "Warehouse",
    "WarehouseError",
    "WarehouseNotCreatedError",
    "WarehouseSource",
    "build_report_definitions",
    "bulk_load",
    "compare_to_latest",
    "create_warehouse",
    "cube_emissions",
    "cumulative_contribution",
    "get_warehouse_source",
    "join_emissions",
    "moving_average",
    "rank_countries",
]
