"""Register the GHG warehouse reports deployment programmatically.

Usage:
    PREFECT_API_URL=http://localhost:4200/api uv run python deployments/ghg_warehouse_reports/deploy.py
"""

from dotenv import load_dotenv
from flow import ghg_warehouse_reports_deployment_flow

if __name__ == "__main__":
    load_dotenv()
    ghg_warehouse_reports_deployment_flow.deploy(
        name="ghg-warehouse-reports",
        work_pool_name="default",
        cron="0 6 * * *",
    )
