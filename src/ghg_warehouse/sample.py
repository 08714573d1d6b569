"""Deterministic sample dataset in the warehouse source file format."""

from __future__ import annotations

import csv
import datetime
from pathlib import Path

from prefect import task

from ghg_warehouse.config import DEFAULT_FILENAMES

SAMPLE_COUNTRIES = ["ABW", "AFG", "CHN", "USA"]
SAMPLE_GASES = ["ch4", "co2", "n2o"]
SAMPLE_SECTORS = ["agriculture", "buildings", "manufacturing", "power"]
SAMPLE_SUBSECTORS = ["enteric-fermentation", "residential-onsite-fuel", "cement", "electricity-generation"]
SAMPLE_YEARS = list(range(2015, 2022))

# gas_id with no row in the gas dimension
ORPHAN_GAS_ID = 99


def _write(path: Path, header: list[str], rows: list[list[object]]) -> Path:
    with open(path, "w", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)
    return path


@task
def generate_sample_files(directory: str) -> dict[str, Path]:
    """Write a small emissions dataset, one file per warehouse table.

    The fact table includes one record with an unmatched gas key and one
    record with a null quantity.

    Args:
        directory: Directory to write into.

    Returns:
        Table name to written file path.
    """
    base = Path(directory)
    base.mkdir(parents=True, exist_ok=True)
    paths: dict[str, Path] = {}

    def dimension(table: str, header: list[str], values: list[object]) -> None:
        rows = [[i, v] for i, v in enumerate(values, 1)]
        paths[table] = _write(base / DEFAULT_FILENAMES[table], header, rows)

    dimension("dim_countries", ["country_id", "iso_country_code"], list(SAMPLE_COUNTRIES))
    dimension(
        "dim_start_times",
        ["start_time_id", "start_time"],
        [datetime.date(y, 1, 1).isoformat() for y in SAMPLE_YEARS],
    )
    dimension(
        "dim_end_times",
        ["end_time_id", "end_time"],
        [datetime.date(y, 12, 31).isoformat() for y in SAMPLE_YEARS],
    )
    dimension("dim_gases", ["gas_id", "gas_name"], list(SAMPLE_GASES))
    dimension("dim_sectors", ["sector_id", "sector_name"], list(SAMPLE_SECTORS))
    dimension("dim_subsectors", ["subsector_id", "subsector_name"], list(SAMPLE_SUBSECTORS))

    facts: list[list[object]] = []
    emission_id = 0
    for ci in range(1, len(SAMPLE_COUNTRIES) + 1):
        for ti in range(1, len(SAMPLE_YEARS) + 1):
            for si in range(1, len(SAMPLE_SECTORS) + 1):
                for gi in range(1, len(SAMPLE_GASES) + 1):
                    emission_id += 1
                    quantity = round(ci * 1000.0 + si * 100.0 + gi * 10.0 + (ci * ti * si * gi * 37) % 250, 2)
                    facts.append([emission_id, ci, ti, ti, si, si, gi, quantity])
    facts.append([emission_id + 1, 1, 1, 1, 1, 1, ORPHAN_GAS_ID, 500.0])
    facts.append([emission_id + 2, 2, 1, 1, 2, 2, 1, ""])
    paths["emissions"] = _write(
        base / DEFAULT_FILENAMES["emissions"],
        [
            "emission_id",
            "country_id",
            "start_time_id",
            "end_time_id",
            "sector_id",
            "subsector_id",
            "gas_id",
            "quantity",
        ],
        facts,
    )
    print(f"Generated {len(facts)} emission records in {base}")
    return paths
