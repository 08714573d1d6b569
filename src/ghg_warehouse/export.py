"""Report output: CSV files and Prefect artifacts."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from prefect import task
from prefect.artifacts import create_markdown_artifact, create_table_artifact
from pydantic import BaseModel

from ghg_warehouse.config import timestamp

ARTIFACT_PREVIEW_ROWS = 50


class ReportOutput(BaseModel):
    """One computed report and where it was written."""

    name: str
    row_count: int
    excluded_count: int
    path: str


class WarehouseRunSummary(BaseModel):
    """Summary of a warehouse load and report run."""

    table_counts: dict[str, int]
    rejected_counts: dict[str, int]
    reports: list[ReportOutput]
    output_dir: str


def _flatten(row: BaseModel) -> dict[str, Any]:
    return row.model_dump(mode="json")


@task
def write_report_csv(directory: str, name: str, rows: list[BaseModel]) -> Path:
    """Write report rows to ``<directory>/<name>.csv``.

    Args:
        directory: Output directory.
        name: Report name.
        rows: Report rows, all of one model.

    Returns:
        Path to the written file.
    """
    path = Path(directory) / f"{name}.csv"
    if not rows:
        path.write_text("")
        return path
    fieldnames = list(type(rows[0]).model_fields)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, lineterminator="\n")
        writer.writeheader()
        writer.writerows(_flatten(row) for row in rows)
    print(f"Wrote {len(rows)} rows to {path}")
    return path


def report_summary_markdown(summary: WarehouseRunSummary) -> str:
    """Render a run summary as markdown."""
    lines = [
        "# GHG Warehouse Reports",
        "",
        f"**Completed at:** {timestamp()}",
        f"**Output:** `{summary.output_dir}`",
        "",
        "## Tables",
        "",
        "| Table | Rows | Rejected |",
        "|-------|------|----------|",
        *[
            f"| {name} | {count} | {summary.rejected_counts.get(name, 0)} |"
            for name, count in summary.table_counts.items()
        ],
        "",
        "## Reports",
        "",
        "| Report | Rows | Excluded records |",
        "|--------|------|------------------|",
        *[f"| {r.name} | {r.row_count} | {r.excluded_count} |" for r in summary.reports],
    ]
    return "\n".join(lines)


@task
def publish_reports(summary: WarehouseRunSummary, reports: dict[str, list[BaseModel]]) -> None:
    """Publish the run summary and a preview table per report.

    Args:
        summary: Run summary.
        reports: Report name to rows.
    """
    create_markdown_artifact(
        key="ghg-warehouse-summary",
        markdown=report_summary_markdown(summary),
        description="GHG warehouse load and report summary",
    )
    for name, rows in reports.items():
        create_table_artifact(
            key=f"ghg-{name.replace('_', '-')}",
            table=[_flatten(row) for row in rows[:ARTIFACT_PREVIEW_ROWS]],
            description=f"{name}: first {min(len(rows), ARTIFACT_PREVIEW_ROWS)} of {len(rows)} rows",
        )
    print(f"Published {len(reports) + 1} artifacts")
