"""Load-and-report sequence shared by the warehouse flows.

``run_warehouse_reports`` submits Prefect tasks and must be called from
inside a flow.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from ghg_warehouse.config import UnmatchedPolicy, WarehouseSource
from ghg_warehouse.export import ReportOutput, WarehouseRunSummary, write_report_csv
from ghg_warehouse.loader import bulk_load
from ghg_warehouse.reports import build_report_definitions
from ghg_warehouse.schema import create_warehouse, join_emissions

logger = logging.getLogger(__name__)


def run_warehouse_reports(
    source: WarehouseSource,
    output_dir: str,
    policy: UnmatchedPolicy = UnmatchedPolicy.EXCLUDE,
    moving_average_windows: Sequence[int] = (3, 5),
) -> tuple[WarehouseRunSummary, dict[str, list[BaseModel]]]:
    """Bulk load the warehouse, run every report, and write report CSVs.

    Args:
        source: Source file location and layout.
        output_dir: Directory for report CSVs, created if missing.
        policy: Handling of fact records with unmatched dimension keys.
        moving_average_windows: Moving-average window sizes.

    Returns:
        The run summary and the report rows by report name.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    warehouse = create_warehouse()
    load = bulk_load(warehouse, source)
    for row in load.rejected:
        logger.warning("Rejected %s line %d: %s", row.table, row.line_number, row.reason)

    reports: dict[str, list[BaseModel]] = {}
    outputs: list[ReportOutput] = []
    for definition in build_report_definitions(moving_average_windows):
        joined = join_emissions(warehouse, definition.dimensions, policy)
        if joined.excluded:
            logger.warning(
                "%s: %d emission records excluded (unmatched %s)",
                definition.name,
                len(joined.excluded),
                ", ".join(sorted({e.dimension for e in joined.excluded})),
            )
        rows = definition.run(joined.rows)
        path = write_report_csv(output_dir, definition.name, rows)
        reports[definition.name] = rows
        outputs.append(
            ReportOutput(
                name=definition.name,
                row_count=len(rows),
                excluded_count=len(joined.excluded),
                path=str(path),
            )
        )

    summary = WarehouseRunSummary(
        table_counts=warehouse.table_counts(),
        rejected_counts=load.rejected_counts,
        reports=outputs,
        output_dir=output_dir,
    )
    return summary, reports
