"""Emissions enrichment: one Travel Impact Model request per unique itinerary, run concurrently."""

import asyncio
import logging
import re

from visco2fly.services.emissions_client import TravelImpactClient
from visco2fly.services.errors import EmissionsUnavailable
from visco2fly.services.grouping import group_offers, itinerary_key, unique_itineraries
from visco2fly.services.normalize import CABIN_EMISSIONS_KEYS, CABIN_ORDER, parse_timestamp

logger = logging.getLogger(__name__)

EMISSIONS_KEYS = [CABIN_EMISSIONS_KEYS[c] for c in CABIN_ORDER]

_DIGITS_RE = re.compile(r"\d+")


def _flight_number(value) -> int:
    match = _DIGITS_RE.search(str(value or ""))
    if not match:
        raise EmissionsUnavailable(f"unusable flight number {value!r}")
    return int(match.group(0))


def segment_descriptor(seg: dict) -> dict:
    """Travel Impact Model flight descriptor for one segment.

    The operating carrier/number pair is used when both are known,
    otherwise the marketing pair.
    """
    operating = seg.get("operating") or {}
    if operating.get("carrierCode") and operating.get("number"):
        carrier, number = operating["carrierCode"], operating["number"]
    else:
        carrier, number = seg.get("carrierCode"), seg.get("number")
    if not carrier:
        raise EmissionsUnavailable("segment without carrier code")

    departed = parse_timestamp((seg.get("departure") or {}).get("at"))
    if departed is None:
        raise EmissionsUnavailable("segment without departure timestamp")

    return {
        "origin": seg["departure"]["iataCode"],
        "destination": seg["arrival"]["iataCode"],
        "operatingCarrierCode": carrier,
        "flightNumber": _flight_number(number),
        "departureDate": {"year": departed.year, "month": departed.month, "day": departed.day},
    }


def build_flight_descriptors(offer: dict) -> list[dict]:
    return [
        segment_descriptor(seg)
        for itin in offer.get("itineraries", [])
        for seg in itin.get("segments", [])
    ]


def aggregate_emissions(flight_emissions: list[dict], requested: int) -> dict | None:
    """Sum per-segment grams into per-cabin totals.

    Returns None when the provider sent nothing back. Only strictly positive
    totals are kept; completeness requires every requested segment to carry
    an ``emissionsGramsPerPax`` object.
    """
    if not flight_emissions:
        return None

    totals = dict.fromkeys(EMISSIONS_KEYS, 0)
    complete = len(flight_emissions) >= requested
    for entry in flight_emissions:
        grams = entry.get("emissionsGramsPerPax")
        if not grams:
            complete = False
            continue
        for key in EMISSIONS_KEYS:
            value = grams.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
                totals[key] += value

    per_pax = {k: v for k, v in totals.items() if v > 0}
    available = [c for c in CABIN_ORDER if CABIN_EMISSIONS_KEYS[c] in per_pax]
    return {
        "emissionsGramsPerPax": per_pax,
        "availableCabinClasses": available,
        "emissionsCompleteness": complete,
    }


async def _emissions_for_group(client: TravelImpactClient, representative: dict) -> dict | None:
    descriptors = build_flight_descriptors(representative)
    if not descriptors:
        return None
    flight_emissions = await client.compute_flight_emissions(descriptors)
    return aggregate_emissions(flight_emissions, len(descriptors))


async def enrich_offers(client: TravelImpactClient, offers: list[dict]) -> int:
    """Attach emissions to every offer, in place.

    Only the first-seen offer of each physical itinerary is looked up; its
    result is copied onto every fare of that itinerary. Itineraries whose
    lookup fails are left without emissions fields. Returns the number of
    itineraries that were enriched.
    """
    groups = group_offers(offers)
    representatives = unique_itineraries(offers)
    duplicates = len(offers) - len(representatives)
    if duplicates:
        logger.info(f"Grouped {len(offers)} offers into {len(representatives)} itineraries ({duplicates} fare duplicates)")

    results = await asyncio.gather(
        *(_emissions_for_group(client, rep) for rep in representatives),
        return_exceptions=True,
    )

    enriched = 0
    for rep, result in zip(representatives, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(f"Emissions lookup failed for itinerary {rep.get('id')}: {result}")
            continue
        if result is None:
            logger.info(f"No emissions data for itinerary {rep.get('id')}")
            continue
        for offer in groups[itinerary_key(rep)]:
            offer["emissionsGramsPerPax"] = dict(result["emissionsGramsPerPax"])
            offer["availableCabinClasses"] = list(result["availableCabinClasses"])
            offer["emissionsCompleteness"] = result["emissionsCompleteness"]
        enriched += 1

    logger.info(f"Emissions: {enriched}/{len(representatives)} itinerary groups enriched")
    return enriched
