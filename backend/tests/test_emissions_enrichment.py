import asyncio
from unittest.mock import AsyncMock

import pytest

from visco2fly.services.emissions_enrichment import (
    aggregate_emissions,
    build_flight_descriptors,
    enrich_offers,
    segment_descriptor,
)
from visco2fly.services.errors import EmissionsUnavailable


def test_descriptor_prefers_operating_pair(make_segment):
    seg = make_segment("BA", "1505", "2025-06-01T23:30:00", "2025-06-02T02:00:00", operating=("AA", "6143"))
    assert segment_descriptor(seg) == {
        "origin": "LHR",
        "destination": "JFK",
        "operatingCarrierCode": "AA",
        "flightNumber": 6143,
        "departureDate": {"year": 2025, "month": 6, "day": 1},
    }


def test_descriptor_falls_back_to_marketing_pair(make_segment):
    seg = make_segment("BA", "0117", "2025-06-01T08:00:00", "2025-06-01T11:00:00", operating=("AA", None))
    desc = segment_descriptor(seg)
    assert desc["operatingCarrierCode"] == "BA"
    assert desc["flightNumber"] == 117


def test_descriptor_uses_local_departure_date(make_segment):
    seg = make_segment("QF", "1", "2025-06-01T23:55:00+10:00", "2025-06-02T05:00:00")
    assert segment_descriptor(seg)["departureDate"] == {"year": 2025, "month": 6, "day": 1}


def test_descriptor_without_timestamp_raises(make_segment):
    seg = make_segment("BA", "1", None, "2025-06-01T11:00:00")
    with pytest.raises(EmissionsUnavailable):
        segment_descriptor(seg)


def test_build_descriptors_covers_all_itineraries(make_offer, make_segment):
    offer = make_offer(
        itineraries=[
            {"duration": None, "segments": [make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T11:00:00")]},
            {"duration": None, "segments": [make_segment("BA", "2", "2025-06-08T08:00:00", "2025-06-08T11:00:00")]},
        ]
    )
    assert [d["flightNumber"] for d in build_flight_descriptors(offer)] == [1, 2]


def test_aggregate_sums_positive_values_only():
    result = aggregate_emissions(
        [
            {"emissionsGramsPerPax": {"economy": 100000, "premiumEconomy": 0, "business": 300000}},
            {"emissionsGramsPerPax": {"economy": 50000, "business": 150000, "first": -1}},
        ],
        requested=2,
    )
    assert result == {
        "emissionsGramsPerPax": {"economy": 150000, "business": 450000},
        "availableCabinClasses": ["ECONOMY", "BUSINESS"],
        "emissionsCompleteness": True,
    }


def test_aggregate_incomplete_when_segment_missing_data():
    result = aggregate_emissions(
        [{"emissionsGramsPerPax": {"economy": 100000}}, {"flight": {"origin": "JFK"}}],
        requested=2,
    )
    assert result["emissionsGramsPerPax"] == {"economy": 100000}
    assert result["emissionsCompleteness"] is False


def test_aggregate_incomplete_when_fewer_entries_than_segments():
    result = aggregate_emissions([{"emissionsGramsPerPax": {"economy": 1}}], requested=2)
    assert result["emissionsCompleteness"] is False


def test_aggregate_empty_response_is_none():
    assert aggregate_emissions([], requested=1) is None


def test_one_request_per_itinerary_group(make_offer, make_segment):
    a1 = make_offer("a1", price=100)
    a2 = make_offer("a2", price=150)
    b = make_offer("b", segments=[make_segment("VS", "3", "2025-06-01T12:00:00", "2025-06-01T15:00:00")])
    offers = [a1, a2, b]

    client = AsyncMock()
    client.compute_flight_emissions.return_value = [{"emissionsGramsPerPax": {"economy": 200000}}]

    enriched = asyncio.run(enrich_offers(client, offers))

    assert enriched == 2
    assert client.compute_flight_emissions.await_count == 2
    assert a1["emissionsGramsPerPax"] == a2["emissionsGramsPerPax"] == {"economy": 200000}
    assert a1["emissionsGramsPerPax"] is not a2["emissionsGramsPerPax"]


def test_failed_group_leaves_siblings_intact(make_offer, make_segment):
    ok = make_offer("ok")
    broken = make_offer("broken", segments=[make_segment("VS", "3", "2025-06-01T12:00:00", "2025-06-01T15:00:00")])
    offers = [ok, broken]

    async def fake_compute(flights):
        if flights[0]["operatingCarrierCode"] == "VS":
            raise EmissionsUnavailable("timeout")
        return [{"emissionsGramsPerPax": {"economy": 90000, "business": 250000}}]

    client = AsyncMock()
    client.compute_flight_emissions.side_effect = fake_compute

    asyncio.run(enrich_offers(client, offers))

    assert ok["emissionsCompleteness"] is True
    assert ok["availableCabinClasses"] == ["ECONOMY", "BUSINESS"]
    assert "emissionsGramsPerPax" not in broken
    assert "emissionsCompleteness" not in broken


def test_lookups_for_different_itineraries_run_concurrently(make_offer, make_segment):
    first = make_offer("first")
    second = make_offer("second", segments=[make_segment("VS", "3", "2025-06-01T12:00:00", "2025-06-01T15:00:00")])

    async def run():
        second_started = asyncio.Event()

        async def fake_compute(flights):
            if flights[0]["operatingCarrierCode"] == "VS":
                second_started.set()
            else:
                # Only completes if the other itinerary's lookup is already in flight.
                await asyncio.wait_for(second_started.wait(), timeout=1)
            return [{"emissionsGramsPerPax": {"economy": 100000}}]

        client = AsyncMock()
        client.compute_flight_emissions.side_effect = fake_compute
        return await enrich_offers(client, [first, second])

    assert asyncio.run(run()) == 2
    assert first["emissionsCompleteness"] is True
    assert second["emissionsCompleteness"] is True


def test_duplicate_fares_share_one_lookup_from_first_seen_offer(make_offer):
    cheap = make_offer("cheap", price=80)
    flexible = make_offer("flexible", price=140)

    client = AsyncMock()
    client.compute_flight_emissions.return_value = [{"emissionsGramsPerPax": {"economy": 120000}}]

    asyncio.run(enrich_offers(client, [cheap, flexible]))

    client.compute_flight_emissions.assert_awaited_once()
    assert flexible["emissionsGramsPerPax"] == {"economy": 120000}
