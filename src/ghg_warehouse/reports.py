"""Analytical reports over joined emission records.

Every report coalesces null quantities to zero, groups the joined rows, and
then applies its window logic per partition:

- ``cube_emissions``: sums and counts for every subset of country/sector/gas
- ``rank_countries``: competition rank of country totals
- ``compare_to_latest``: each period against the final period per country/gas
- ``moving_average``: trailing N-year mean per country/sector
- ``cumulative_contribution``: running share of the grand total per sector
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Sequence
from typing import Any, Literal

from prefect import task
from pydantic import BaseModel

from ghg_warehouse.models import (
    ALL,
    Comparison,
    CountryRank,
    CubeRow,
    JoinedEmission,
    LatestComparison,
    MovingAverageRow,
    SectorContribution,
)
from ghg_warehouse.windows import (
    collation_key,
    competition_rank,
    grouping_masks,
    last_value_following,
    partition_by,
    running_sum,
    trailing_mean,
)

CUBE_DIMENSIONS: tuple[str, ...] = ("country", "sector", "gas")


def _require(rows: Sequence[JoinedEmission], dimensions: Sequence[str]) -> None:
    """Fail fast when rows were not joined on a dimension the report needs."""
    for row in rows:
        missing = [d for d in dimensions if getattr(row, d) is None]
        if missing:
            raise ValueError(f"Emission {row.emission_id} was not joined on: {', '.join(missing)}")


def _sum_by(rows: Sequence[JoinedEmission], key: Any) -> dict[Any, float]:
    totals: dict[Any, float] = {}
    for row in rows:
        k = key(row)
        totals[k] = totals.get(k, 0.0) + row.amount
    return totals


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@task
def cube_emissions(rows: list[JoinedEmission]) -> list[CubeRow]:
    """Aggregate emissions over every subset of country, sector and gas.

    A dimension left out of a grouping set is reported as ``"ALL"``.  Null
    quantities add 0 to the total but still count as entries.

    Args:
        rows: Rows joined on country, sector and gas.

    Returns:
        List of CubeRow ordered by country, sector, gas.
    """
    _require(rows, CUBE_DIMENSIONS)
    cube: list[CubeRow] = []
    for mask in grouping_masks(len(CUBE_DIMENSIONS)):

        def grouping_key(row: JoinedEmission, mask: tuple[bool, ...] = mask) -> tuple[str, ...]:
            pairs = zip(CUBE_DIMENSIONS, mask, strict=True)
            return tuple(getattr(row, dim) if keep else ALL for dim, keep in pairs)

        for (country, sector, gas), members in partition_by(rows, grouping_key).items():
            cube.append(
                CubeRow(
                    country=country,
                    sector=sector,
                    gas=gas,
                    total_emissions=sum(m.amount for m in members),
                    entries_count=len(members),
                )
            )
    if not rows:
        cube.append(CubeRow(country=ALL, sector=ALL, gas=ALL, total_emissions=0.0, entries_count=0))

    cube.sort(key=lambda r: (collation_key(r.country), collation_key(r.sector), collation_key(r.gas)))
    print(f"Cube: {len(cube)} rows from {len(rows)} emission records")
    return cube


@task
def rank_countries(rows: list[JoinedEmission]) -> list[CountryRank]:
    """Rank countries by total emissions, highest first.

    Args:
        rows: Rows joined on country.

    Returns:
        List of CountryRank ordered by rank, ties by country code.
    """
    _require(rows, ("country",))
    totals = sorted(
        _sum_by(rows, lambda r: r.country).items(),
        key=lambda item: (-item[1], collation_key(item[0])),
    )
    ranks = competition_rank([total for _, total in totals])
    ranking = [
        CountryRank(country=country, total_emissions=total, emissions_rank=rank)
        for (country, total), rank in zip(totals, ranks, strict=True)
    ]
    print(f"Ranked {len(ranking)} countries")
    return ranking


@task
def compare_to_latest(rows: list[JoinedEmission]) -> list[LatestComparison]:
    """Compare each period total with the final period of its country and gas.

    Period totals that are zero or negative are dropped before the window is
    applied, so the final period is the latest one with positive emissions.

    Args:
        rows: Rows joined on country, gas and end time.

    Returns:
        List of LatestComparison ordered by country, gas, end time.
    """
    _require(rows, ("country", "gas", "end_time"))
    totals = _sum_by(rows, lambda r: (r.country, r.gas, r.end_time))
    positive = [(key, total) for key, total in totals.items() if total > 0]

    comparisons: list[LatestComparison] = []
    for (country, gas), periods in partition_by(positive, lambda item: item[0][:2]).items():
        periods.sort(key=lambda item: item[0][2])
        values = [total for _, total in periods]
        for ((_, _, end_time), total), last in zip(periods, last_value_following(values), strict=True):
            if total > last:
                label = Comparison.MORE
            elif total < last:
                label = Comparison.LESS
            else:
                label = Comparison.LATEST
            comparisons.append(
                LatestComparison(
                    country=country,
                    gas=gas,
                    total_emissions=total,
                    end_time=end_time,
                    last_emission_value=last,
                    comparison_to_latest=label,
                )
            )

    comparisons.sort(key=lambda r: (collation_key(r.country), collation_key(r.gas), r.end_time))
    print(f"Latest-value comparison: {len(comparisons)} periods")
    return comparisons


@task
def moving_average(
    rows: list[JoinedEmission],
    window: int = 3,
    period_source: Literal["start_time", "end_time"] = "start_time",
) -> list[MovingAverageRow]:
    """Trailing moving average of yearly totals per country and sector.

    The period is the calendar year of ``period_source``.  The average spans
    the current year and up to ``window - 1`` preceding years present in the
    partition; early years average over the rows available.

    Args:
        rows: Rows joined on country, sector and the period source.
        window: Number of periods in the trailing frame.
        period_source: Time dimension the year is taken from.

    Returns:
        List of MovingAverageRow ordered by country, sector, period.
    """
    if window < 1:
        raise ValueError("window must be at least 1")
    _require(rows, ("country", "sector", period_source))

    def period_of(row: JoinedEmission) -> int:
        moment: datetime.date = getattr(row, period_source)
        return moment.year

    totals = _sum_by(rows, lambda r: (r.country, r.sector, period_of(r)))
    averages: list[MovingAverageRow] = []
    for (country, sector), periods in partition_by(totals.items(), lambda item: item[0][:2]).items():
        periods.sort(key=lambda item: item[0][2])
        means = trailing_mean([total for _, total in periods], window)
        for ((_, _, period), total), mean in zip(periods, means, strict=True):
            averages.append(
                MovingAverageRow(
                    country=country,
                    sector=sector,
                    period=period,
                    total_emissions=total,
                    moving_average=mean,
                    window=window,
                )
            )

    averages.sort(key=lambda r: (collation_key(r.country), collation_key(r.sector), r.period))
    print(f"{window}-year moving average: {len(averages)} periods")
    return averages


@task
def cumulative_contribution(rows: list[JoinedEmission]) -> list[SectorContribution]:
    """Running share of total emissions by sector, largest sector first.

    Args:
        rows: Rows joined on sector.

    Returns:
        List of SectorContribution ordered by total descending, ties by name.
        ``cumulative_fraction`` is ``None`` when the grand total is zero.
    """
    _require(rows, ("sector",))
    totals = sorted(
        _sum_by(rows, lambda r: r.sector).items(),
        key=lambda item: (-item[1], collation_key(item[0])),
    )
    cumulative = running_sum(total for _, total in totals)
    grand_total = cumulative[-1] if cumulative else 0.0

    contributions = [
        SectorContribution(
            sector=sector,
            total_emissions=total,
            cumulative_total=running,
            cumulative_fraction=running / grand_total if grand_total else None,
        )
        for (sector, total), running in zip(totals, cumulative, strict=True)
    ]
    print(f"Cumulative contribution over {len(contributions)} sectors, grand total {grand_total:,.2f}")
    return contributions


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ReportDefinition(BaseModel):
    """A report, the dimensions it joins, and the task that computes it."""

    name: str
    dimensions: list[str]
    runner: Callable[..., list[Any]]
    params: dict[str, Any] = {}

    def run(self, rows: list[JoinedEmission]) -> list[Any]:
        return self.runner(rows, **self.params)


def build_report_definitions(moving_average_windows: Sequence[int] = (3, 5)) -> list[ReportDefinition]:
    """Return the report suite in run order.

    Args:
        moving_average_windows: One moving-average report per window size.

    Returns:
        List of ReportDefinition.
    """
    definitions = [
        ReportDefinition(name="emissions_cube", dimensions=["country", "sector", "gas"], runner=cube_emissions),
        ReportDefinition(name="country_ranking", dimensions=["country", "sector", "gas"], runner=rank_countries),
        ReportDefinition(
            name="latest_value_comparison",
            dimensions=["country", "gas", "end_time"],
            runner=compare_to_latest,
        ),
    ]
    for window in moving_average_windows:
        definitions.append(
            ReportDefinition(
                name=f"moving_average_{window}y",
                dimensions=["country", "sector", "start_time"],
                runner=moving_average,
                params={"window": window},
            )
        )
    definitions.append(
        ReportDefinition(name="cumulative_contribution", dimensions=["sector"], runner=cumulative_contribution)
    )
    return definitions
