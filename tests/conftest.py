"""Shared test fixtures."""

import datetime
from collections.abc import Callable

import pytest

from ghg_warehouse.models import (
    Country,
    EmissionRecord,
    Gas,
    JoinedEmission,
    Sector,
    Subsector,
    TimePoint,
)
from ghg_warehouse.schema import Warehouse


@pytest.fixture
def warehouse() -> Warehouse:
    """A small loaded warehouse.

    Emission 6 references a gas with no dimension row and emission 7 has no
    country; emission 4 has a null quantity.
    """
    wh = Warehouse().create()
    wh.insert_many(
        "dim_countries",
        [Country(country_id=1, iso_country_code="ABW"), Country(country_id=2, iso_country_code="AFG")],
    )
    wh.insert_many(
        "dim_start_times",
        [TimePoint(time_id=i, calendar_date=datetime.date(2014 + i, 1, 1)) for i in (1, 2, 3)],
    )
    wh.insert_many(
        "dim_end_times",
        [TimePoint(time_id=i, calendar_date=datetime.date(2014 + i, 12, 31)) for i in (1, 2, 3)],
    )
    wh.insert_many("dim_gases", [Gas(gas_id=1, gas_name="ch4"), Gas(gas_id=2, gas_name="co2")])
    wh.insert_many(
        "dim_sectors",
        [Sector(sector_id=1, sector_name="agriculture"), Sector(sector_id=2, sector_name="power")],
    )
    wh.insert_many("dim_subsectors", [Subsector(subsector_id=1, subsector_name="enteric-fermentation")])

    def fact(
        emission_id: int, country: int | None, time: int, sector: int, gas: int, quantity: float | None
    ) -> EmissionRecord:
        return EmissionRecord(
            emission_id=emission_id,
            country_id=country,
            start_time_id=time,
            end_time_id=time,
            sector_id=sector,
            subsector_id=1,
            gas_id=gas,
            quantity=quantity,
        )

    wh.insert_many(
        "emissions",
        [
            fact(1, 1, 1, 1, 1, 5.0),
            fact(2, 1, 1, 1, 1, 3.0),
            fact(3, 1, 2, 2, 2, 20.0),
            fact(4, 2, 1, 1, 2, None),
            fact(5, 2, 3, 2, 1, 12.0),
            fact(6, 1, 3, 1, 99, 100.0),
            fact(7, None, 1, 1, 1, 7.0),
        ],
    )
    return wh


@pytest.fixture
def make_row() -> Callable[..., JoinedEmission]:
    """Factory fixture for JoinedEmission rows with auto-numbered ids."""

    class _Factory:
        def __init__(self) -> None:
            self.next_id = 0

        def __call__(self, **fields: object) -> JoinedEmission:
            self.next_id += 1
            return JoinedEmission(emission_id=self.next_id, **fields)  # type: ignore[arg-type]

    return _Factory()
