"""Create the GHG warehouse source block.

Saves (or overwrites) the ``ghg-warehouse`` WarehouseSource block.
Requires a running Prefect server (PREFECT_API_URL).

The block is created from environment variables when set:

    GHG_DATA_DIR    -- directory holding the delimited source files
    GHG_MAX_ERRORS  -- rejected rows tolerated per table

Usage:
    PREFECT_API_URL=http://localhost:4200/api uv run python scripts/create_blocks.py
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from ghg_warehouse.config import WarehouseSource


def main() -> None:
    load_dotenv()
    data_dir = os.environ.get("GHG_DATA_DIR", "data")
    max_errors = int(os.environ.get("GHG_MAX_ERRORS", "10"))

    block = WarehouseSource(data_dir=data_dir, max_errors=max_errors)
    block.save("ghg-warehouse", overwrite=True)
    print(f"Saved block: ghg-warehouse -> {data_dir} (max_errors={max_errors})")


if __name__ == "__main__":
    main()
