"""Row models for the emissions star schema and its reports."""

from __future__ import annotations

import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

ALL = "ALL"
UNKNOWN = "UNKNOWN"

# Compared case-insensitively, like the report sort order
RESERVED_NAMES = frozenset({ALL.casefold(), UNKNOWN.casefold()})


def _not_reserved(value: str) -> str:
    if value.casefold() in RESERVED_NAMES:
        raise ValueError(f"{value!r} is reserved for report markers")
    return value


CountryCode = Annotated[str, Field(min_length=1, max_length=10), AfterValidator(_not_reserved)]
GasName = Annotated[str, Field(min_length=1, max_length=10), AfterValidator(_not_reserved)]
SectorName = Annotated[str, Field(min_length=1, max_length=25), AfterValidator(_not_reserved)]
SubsectorName = Annotated[str, Field(min_length=1, max_length=50), AfterValidator(_not_reserved)]

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------


class Country(BaseModel):
    """Country dimension record."""

    country_id: int
    iso_country_code: CountryCode


class TimePoint(BaseModel):
    """Start- or end-time dimension record."""

    time_id: int
    calendar_date: datetime.date


class Gas(BaseModel):
    """Gas dimension record."""

    gas_id: int
    gas_name: GasName


class Sector(BaseModel):
    """Sector dimension record."""

    sector_id: int
    sector_name: SectorName


class Subsector(BaseModel):
    """Subsector dimension record.

    Carries no reference to a parent sector.
    """

    subsector_id: int
    subsector_name: SubsectorName


# ---------------------------------------------------------------------------
# Facts
# ---------------------------------------------------------------------------


class EmissionRecord(BaseModel):
    """Fact table record: one quantity at one dimensional coordinate."""

    emission_id: int
    country_id: int | None = None
    start_time_id: int | None = None
    end_time_id: int | None = None
    sector_id: int | None = None
    subsector_id: int | None = None
    gas_id: int | None = None
    quantity: float | None = None


class JoinedEmission(BaseModel):
    """Fact record with its dimension keys resolved to attributes.

    Attributes for dimensions that were not joined stay ``None``.
    """

    emission_id: int
    country: str | None = None
    start_time: datetime.date | None = None
    end_time: datetime.date | None = None
    sector: str | None = None
    subsector: str | None = None
    gas: str | None = None
    quantity: float | None = None

    @property
    def amount(self) -> float:
        """Quantity with null coalesced to zero."""
        return self.quantity if self.quantity is not None else 0.0


class ExcludedEmission(BaseModel):
    """A fact record dropped by a join, and why."""

    emission_id: int
    dimension: str
    key: int | None


class JoinResult(BaseModel):
    """Output of joining the fact table against a set of dimensions."""

    dimensions: list[str]
    rows: list[JoinedEmission]
    excluded: list[ExcludedEmission] = []

    @property
    def excluded_ids(self) -> set[int]:
        return {e.emission_id for e in self.excluded}


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------


class CubeRow(BaseModel):
    """One grouping-set row of the emissions cube."""

    country: str
    sector: str
    gas: str
    total_emissions: float
    entries_count: int


class CountryRank(BaseModel):
    """Country ranked by total emissions."""

    country: str
    total_emissions: float
    emissions_rank: int


class Comparison(StrEnum):
    MORE = "More"
    LESS = "Less"
    LATEST = "Latest"


class LatestComparison(BaseModel):
    """A period total compared with the final period of its partition."""

    country: str
    gas: str
    total_emissions: float
    end_time: datetime.date
    last_emission_value: float
    comparison_to_latest: Comparison


class MovingAverageRow(BaseModel):
    """Trailing moving average for one (country, sector, period)."""

    country: str
    sector: str
    period: int
    total_emissions: float
    moving_average: float
    window: int


class SectorContribution(BaseModel):
    """Sector share of the grand total, accumulated largest first."""

    sector: str
    total_emissions: float
    cumulative_total: float
    cumulative_fraction: float | None
