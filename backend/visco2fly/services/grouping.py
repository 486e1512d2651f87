"""Itinerary identity, grouping and deduplication of canonical offers."""


def itinerary_key(offer: dict) -> str:
    """Physical-itinerary identity: carrier+number@departure per segment.

    Segments are joined by ``|`` and itineraries by ``||``. Price and fare
    fields never contribute to the key.
    """
    return "||".join(
        "|".join(
            f"{seg.get('carrierCode')}{seg.get('number')}@{(seg.get('departure') or {}).get('at')}"
            for seg in itin.get("segments", [])
        )
        for itin in offer.get("itineraries", [])
    )


def group_offers(offers: list[dict]) -> dict[str, list[dict]]:
    """Group offers by itinerary key, preserving first-seen order of keys and members."""
    groups: dict[str, list[dict]] = {}
    for offer in offers:
        groups.setdefault(itinerary_key(offer), []).append(offer)
    return groups


def unique_itineraries(offers: list[dict]) -> list[dict]:
    """First offer of each physical itinerary, in provider order."""
    seen: set[str] = set()
    unique = []
    for offer in offers:
        key = itinerary_key(offer)
        if key in seen:
            continue
        seen.add(key)
        unique.append(offer)
    return unique
