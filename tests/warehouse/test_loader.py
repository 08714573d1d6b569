"""Tests for the bulk loader."""

from pathlib import Path

import pytest

from ghg_warehouse.config import WarehouseSource
from ghg_warehouse.loader import BulkLoadError, bulk_load, parse_rows, read_delimited
from ghg_warehouse.sample import generate_sample_files
from ghg_warehouse.schema import TABLES, Warehouse


def _sample_source(tmp_path: Path, **overrides: object) -> WarehouseSource:
    generate_sample_files.fn(str(tmp_path))
    return WarehouseSource(data_dir=str(tmp_path), **overrides)  # type: ignore[arg-type]


def test_read_delimited_skips_header_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "gases.csv"
    path.write_text("gas_id,gas_name\n1,ch4\n\n2,co2\n")
    rows = read_delimited.fn(path)
    assert rows == [(2, ["1", "ch4"]), (4, ["2", "co2"])]


def test_read_delimited_first_row_and_delimiter(tmp_path: Path) -> None:
    path = tmp_path / "gases.txt"
    path.write_text("1;ch4\n2;co2\n")
    rows = read_delimited.fn(path, delimiter=";", first_row=1)
    assert [fields for _, fields in rows] == [["1", "ch4"], ["2", "co2"]]


def test_parse_rows_positional_columns() -> None:
    result = parse_rows.fn(TABLES["emissions"], [(2, ["1", "3", "1", "1", "2", "5", "1", "12.5"])])
    assert result.rejected == []
    record = result.records[0]
    assert record.country_id == 3
    assert record.subsector_id == 5
    assert record.quantity == 12.5


def test_parse_rows_empty_fields_are_null() -> None:
    result = parse_rows.fn(TABLES["emissions"], [(2, ["1", "", "1", "1", "2", "5", "1", ""])])
    record = result.records[0]
    assert record.country_id is None
    assert record.quantity is None


def test_parse_rows_quarantines_bad_rows() -> None:
    raw = [
        (2, ["1", "ABW"]),
        (3, ["2"]),
        (4, ["x", "AFG"]),
        (5, ["4", "ABCDEFGHIJK"]),
    ]
    result = parse_rows.fn(TABLES["dim_countries"], raw)
    assert len(result.records) == 1
    assert [r.line_number for r in result.rejected] == [3, 4, 5]
    assert "expected 2 fields" in result.rejected[0].reason
    assert "country_id" in result.rejected[1].reason
    assert "iso_country_code" in result.rejected[2].reason


def test_parse_rows_dates() -> None:
    result = parse_rows.fn(TABLES["dim_start_times"], [(2, ["1", "2015-01-01"])])
    assert result.records[0].calendar_date.year == 2015


def test_parse_rows_rejects_report_marker_names() -> None:
    raw = [(2, ["1", "ALL"]), (3, ["2", "unknown"]), (4, ["3", "ABW"])]
    result = parse_rows.fn(TABLES["dim_countries"], raw)
    assert [r.iso_country_code for r in result.records] == ["ABW"]
    assert [r.line_number for r in result.rejected] == [2, 3]
    assert "reserved" in result.rejected[0].reason


def test_read_delimited_keeps_undecodable_rows(tmp_path: Path) -> None:
    path = tmp_path / "gases.csv"
    path.write_bytes(b"gas_id,gas_name\n1,ch4\n4,sf\xff6\n")
    rows = read_delimited.fn(path)
    assert [line for line, _ in rows] == [2, 3]
    result = parse_rows.fn(TABLES["dim_gases"], rows)
    assert len(result.records) == 1
    assert result.rejected[0].line_number == 3
    assert result.rejected[0].reason.startswith("invalid utf-8")
    assert result.rejected[0].values == ["4", "sf\ufffd6"]


def test_bulk_load_sample(tmp_path: Path) -> None:
    wh = Warehouse().create()
    summary = bulk_load.fn(wh, _sample_source(tmp_path))
    assert summary.loaded["dim_countries"] == 4
    assert summary.loaded["emissions"] == 4 * 7 * 4 * 3 + 2
    assert summary.rejected == []
    assert summary.rejected_counts["emissions"] == 0
    assert wh.table_counts() == summary.loaded


def test_bulk_load_tolerates_rejections_up_to_max(tmp_path: Path) -> None:
    source = _sample_source(tmp_path, max_errors=1)
    with open(source.path_for("dim_gases"), "a") as f:
        f.write("four,sf6\n")
    summary = bulk_load.fn(Warehouse().create(), source)
    assert summary.rejected_counts["dim_gases"] == 1
    assert summary.loaded["dim_gases"] == 3


def test_bulk_load_rejects_invalid_utf8_row(tmp_path: Path) -> None:
    source = _sample_source(tmp_path)
    with open(source.path_for("dim_gases"), "ab") as f:
        f.write(b"4,sf\xff6\n")
    wh = Warehouse().create()
    summary = bulk_load.fn(wh, source)
    assert summary.rejected_counts["dim_gases"] == 1
    assert summary.rejected[0].line_number == 5
    assert summary.rejected[0].reason.startswith("invalid utf-8")
    assert summary.loaded["dim_gases"] == 3
    assert summary.loaded["emissions"] == 4 * 7 * 4 * 3 + 2


def test_bulk_load_fails_past_max_errors(tmp_path: Path) -> None:
    source = _sample_source(tmp_path, max_errors=0)
    with open(source.path_for("dim_sectors"), "a") as f:
        f.write("5\n")
    with pytest.raises(BulkLoadError, match="dim_sectors"):
        bulk_load.fn(Warehouse().create(), source)


def test_bulk_load_missing_file(tmp_path: Path) -> None:
    source = _sample_source(tmp_path)
    source.path_for("dim_subsectors").unlink()
    with pytest.raises(FileNotFoundError):
        bulk_load.fn(Warehouse().create(), source)


def test_sample_files_contain_orphan_and_null(tmp_path: Path) -> None:
    paths = generate_sample_files.fn(str(tmp_path))
    assert set(paths) == set(TABLES)
    lines = paths["emissions"].read_text().splitlines()
    assert lines[0].startswith("emission_id,")
    assert lines[-2].split(",")[6] == "99"
    assert lines[-1].endswith(",")
