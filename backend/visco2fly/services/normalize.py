"""Normalization helpers: durations, cabin keys, and provider offers into one canonical shape.

Canonical offers follow the Amadeus ``itineraries`` layout with camelCase keys so
the browser UI and every downstream step read a single structure.
"""

import re
from datetime import datetime
from typing import Any

DURATION_RE = re.compile(r"P(?:(\d+)D)?T(?:(\d+)H)?(?:(\d+)M)?")

# Cabin class (UI/provider enum) -> key inside emissionsGramsPerPax
CABIN_EMISSIONS_KEYS = {
    "ECONOMY": "economy",
    "PREMIUM_ECONOMY": "premiumEconomy",
    "BUSINESS": "business",
    "FIRST": "first",
}
EMISSIONS_KEY_CABINS = {v: k for k, v in CABIN_EMISSIONS_KEYS.items()}
CABIN_ORDER = ["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]

CABIN_LABELS = {
    "ECONOMY": "Economy",
    "PREMIUM_ECONOMY": "Premium Economy",
    "BUSINESS": "Business",
    "FIRST": "First Class",
}


def parse_duration_minutes(value: Any) -> float:
    """Parse ``P[n]DT[n]H[n]M`` into minutes.

    Numbers pass through as minutes, except values above 1000 which are
    taken to be seconds. Anything unparseable is 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if value > 1000:
            return round(value / 60)
        return value
    if isinstance(value, str):
        match = DURATION_RE.search(value)
        if not match:
            return 0
        days = int(match.group(1) or 0)
        hours = int(match.group(2) or 0)
        minutes = int(match.group(3) or 0)
        return days * 24 * 60 + hours * 60 + minutes
    return 0


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a provider timestamp, keeping local wall-clock time."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def cabin_key(cabin_class: str) -> str:
    """ECONOMY -> economy, PREMIUM_ECONOMY -> premiumEconomy, ..."""
    return CABIN_EMISSIONS_KEYS.get(cabin_class.upper(), cabin_class.lower())


def _to_price(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


# ─── Amadeus ───


def _amadeus_segment(seg: dict) -> dict:
    departure = seg["departure"]
    arrival = seg["arrival"]
    operating = seg.get("operating") or {}
    out = {
        "departure": {"iataCode": departure["iataCode"], "at": departure["at"]},
        "arrival": {"iataCode": arrival["iataCode"], "at": arrival["at"]},
        "carrierCode": seg["carrierCode"],
        "number": str(seg["number"]),
        "operating": {
            "carrierCode": operating.get("carrierCode"),
            "number": operating.get("number"),
        },
        "aircraft": {"code": (seg.get("aircraft") or {}).get("code")},
        "duration": seg.get("duration"),
    }
    if departure.get("terminal"):
        out["departure"]["terminal"] = departure["terminal"]
    if arrival.get("terminal"):
        out["arrival"]["terminal"] = arrival["terminal"]
    return out


def normalize_amadeus_offer(raw: dict) -> dict:
    """Trim an Amadeus flight-offer into the canonical shape.

    Raises KeyError/TypeError on a structurally broken offer; the adapter
    turns that into a provider failure.
    """
    price = raw.get("price") or {}
    return {
        "id": str(raw["id"]),
        "source": "amadeus",
        "itineraries": [
            {
                "duration": itin.get("duration"),
                "segments": [_amadeus_segment(s) for s in itin["segments"]],
            }
            for itin in raw["itineraries"]
        ],
        "price": {
            "total": _to_price(price.get("total")),
            "currency": price.get("currency", ""),
        },
    }


# ─── Duffel ───


def _duffel_segment(seg: dict) -> dict:
    marketing = seg.get("marketing_carrier") or {}
    operating = seg.get("operating_carrier") or {}
    out = {
        "departure": {"iataCode": seg["origin"]["iata_code"], "at": seg["departing_at"]},
        "arrival": {"iataCode": seg["destination"]["iata_code"], "at": seg["arriving_at"]},
        "carrierCode": marketing.get("iata_code"),
        "number": seg.get("marketing_carrier_flight_number"),
        "operating": {
            "carrierCode": operating.get("iata_code"),
            "number": seg.get("operating_carrier_flight_number"),
        },
        "aircraft": {"code": (seg.get("aircraft") or {}).get("iata_code")},
        "duration": seg.get("duration"),
    }
    if seg.get("origin_terminal"):
        out["departure"]["terminal"] = seg["origin_terminal"]
    if seg.get("destination_terminal"):
        out["arrival"]["terminal"] = seg["destination_terminal"]
    return out


def duffel_offer_to_canonical(raw: dict) -> dict:
    """Translate a Duffel offer (slices, *_carrier, total_amount) into the canonical shape."""
    return {
        "id": str(raw["id"]),
        "source": "duffel",
        "itineraries": [
            {
                "duration": sl.get("duration"),
                "segments": [_duffel_segment(s) for s in sl["segments"]],
            }
            for sl in raw["slices"]
        ],
        "price": {
            "total": _to_price(raw.get("total_amount")),
            "currency": raw.get("total_currency", ""),
        },
    }


# ─── Airports ───


def airport_display_name(iata_code: str, name: str | None, city: str | None, country: str | None) -> str:
    parts = [p for p in (name, city, country) if p]
    if not parts:
        return iata_code
    return f"{iata_code} - {', '.join(parts)}"


def airport_suggestion(iata_code: str, name: str | None, city: str | None, country: str | None) -> dict:
    return {
        "iataCode": iata_code,
        "name": name,
        "cityName": city,
        "countryName": country,
        "displayName": airport_display_name(iata_code, name, city, country),
    }
