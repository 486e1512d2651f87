import os
import tempfile

# Keep test runs away from real credentials and the package log directory.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="visco2fly-logs-"))
for _var in ("AMADEUS_CLIENT_ID", "AMADEUS_CLIENT_SECRET", "DUFFEL_API_KEY", "GOOGLE_API_KEY"):
    os.environ[_var] = ""

import asyncio
from datetime import date

import pytest

from visco2fly.schemas.search import SearchParams
from visco2fly.services.errors import ProviderUnavailable
from visco2fly.services.flight_provider import FlightProvider


def _segment(carrier, number, dep_at, arr_at, origin="LHR", destination="JFK", duration=None, operating=None):
    op_carrier, op_number = operating or (None, None)
    return {
        "departure": {"iataCode": origin, "at": dep_at},
        "arrival": {"iataCode": destination, "at": arr_at},
        "carrierCode": carrier,
        "number": number,
        "operating": {"carrierCode": op_carrier, "number": op_number},
        "aircraft": {"code": "359"},
        "duration": duration,
    }


@pytest.fixture
def make_segment():
    return _segment


@pytest.fixture
def make_offer():
    def _make(
        offer_id="1",
        price=100.0,
        segments=None,
        duration="PT8H",
        emissions=None,
        complete=True,
        itineraries=None,
    ):
        if itineraries is None:
            segments = segments or [_segment("BA", "117", "2025-06-01T08:00:00", "2025-06-01T11:00:00")]
            itineraries = [{"duration": duration, "segments": segments}]
        offer = {
            "id": offer_id,
            "source": "amadeus",
            "itineraries": itineraries,
            "price": {"total": price, "currency": "EUR"},
        }
        if emissions is not None:
            offer["emissionsGramsPerPax"] = emissions
            offer["availableCabinClasses"] = []
            offer["emissionsCompleteness"] = complete
        return offer

    return _make


@pytest.fixture
def params():
    return SearchParams(
        origin="LHR",
        destination="JFK",
        departure_date=date(2025, 6, 1),
        return_date=None,
        adults=1,
        cabin_class="ECONOMY",
    )


class FakeProvider(FlightProvider):
    """In-memory provider; optionally fails or waits on a gate before answering."""

    def __init__(self, name, offers=None, airports=None, fail=False, gate: asyncio.Event | None = None):
        self.name = name
        self.offers = offers or []
        self.airports = airports or []
        self.fail = fail
        self.gate = gate
        self.flight_calls = 0
        self.airport_calls = 0
        self.started = asyncio.Event() if gate else None
        self.closed = False

    async def search_flights(self, params):
        self.flight_calls += 1
        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ProviderUnavailable(self.name, "boom", 503)
        return [dict(o) for o in self.offers]

    async def search_airports(self, keyword):
        self.airport_calls += 1
        if self.fail:
            raise ProviderUnavailable(self.name, "boom", 503)
        return list(self.airports)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_provider():
    return FakeProvider
