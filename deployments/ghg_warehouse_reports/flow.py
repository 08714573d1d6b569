"""GHG Warehouse Reports -- deployment-ready flow.

Loads the warehouse from the saved ``ghg-warehouse`` source block, runs the
report suite, and writes report CSVs to ``GHG_OUTPUT_DIR``.

Two ways to register this deployment:

1. CLI::

    cd deployments/ghg_warehouse_reports
    prefect deploy --all

2. Python::

    python deployments/ghg_warehouse_reports/deploy.py
"""

import os

from prefect import flow
from prefect.blocks.notifications import SlackWebhook
from prefect.runtime import deployment
from pydantic import SecretStr

from ghg_warehouse.config import UnmatchedPolicy, get_warehouse_source
from ghg_warehouse.export import WarehouseRunSummary, publish_reports
from ghg_warehouse.pipeline import run_warehouse_reports


@flow(name="ghg_warehouse_reports_deployment", log_prints=True)
def ghg_warehouse_reports_deployment_flow(
    source_block: str = "ghg-warehouse",
    policy: UnmatchedPolicy = UnmatchedPolicy.EXCLUDE,
) -> WarehouseRunSummary:
    """Run the report suite against the configured warehouse source."""
    source = get_warehouse_source(source_block)
    output_dir = os.environ.get("GHG_OUTPUT_DIR", "reports")
    summary, reports = run_warehouse_reports(source, output_dir, policy)
    publish_reports(summary, reports)

    name = deployment.name or "local"
    excluded = sum(r.excluded_count for r in summary.reports)
    print(f"[{name}] {len(summary.reports)} reports, {excluded} excluded records -> {summary.output_dir}")
    slack_url = os.environ.get("SLACK_WEBHOOK_URL")
    if slack_url:
        slack = SlackWebhook(url=SecretStr(slack_url))
        slack.notify(
            body=(
                f"*{name}*: {len(summary.reports)} reports written to {summary.output_dir}\n"
                f"Fact rows: {summary.table_counts.get('emissions', 0)} -- excluded from reports: {excluded}"
            ),
            subject="GHG Warehouse Reports",
        )
    return summary


if __name__ == "__main__":
    ghg_warehouse_reports_deployment_flow()
