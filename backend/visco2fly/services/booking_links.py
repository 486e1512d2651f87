"""Deep links to third-party booking sites for an offer's route and dates."""

SKYSCANNER_BASE = "https://www.skyscanner.com/transport/flights"
KAYAK_BASE = "https://www.kayak.com/flights"

KAYAK_CABINS = {
    "PREMIUM_ECONOMY": "premium",
    "BUSINESS": "business",
    "FIRST": "first",
}


def skyscanner_url(origin: str, destination: str, departure_date: str, return_date: str | None = None, cabin_class: str = "ECONOMY") -> str:
    """Dates are YYYY-MM-DD; Skyscanner wants them without dashes."""
    url = f"{SKYSCANNER_BASE}/{origin}/{destination}/{departure_date.replace('-', '')}"
    if return_date:
        url += f"/{return_date.replace('-', '')}"
    return f"{url}/?adults=1&cabinclass={cabin_class.lower()}"


def kayak_url(origin: str, destination: str, departure_date: str, return_date: str | None = None, cabin_class: str = "ECONOMY") -> str:
    url = f"{KAYAK_BASE}/{origin}-{destination}/{departure_date}"
    if return_date:
        url += f"/{return_date}"
    url += "?sort=bestflight_a&passengers=1"
    if cabin_class != "ECONOMY":
        url += f"&cabin={KAYAK_CABINS.get(cabin_class, 'economy')}"
    return url


def _date_part(timestamp) -> str | None:
    if not isinstance(timestamp, str) or not timestamp:
        return None
    return timestamp.split("T")[0]


def offer_booking_links(offer: dict, cabin_class: str = "ECONOMY") -> dict[str, str] | None:
    """Skyscanner and Kayak links for the offer's outbound (and return) itinerary.

    None when the outbound itinerary lacks an airport code or departure time.
    """
    itineraries = offer.get("itineraries") or []
    if not itineraries or not itineraries[0].get("segments"):
        return None

    outbound = itineraries[0]["segments"]
    origin = (outbound[0].get("departure") or {}).get("iataCode")
    destination = (outbound[-1].get("arrival") or {}).get("iataCode")
    departure_date = _date_part((outbound[0].get("departure") or {}).get("at"))
    if not origin or not destination or not departure_date:
        return None

    return_date = None
    if len(itineraries) > 1 and itineraries[1].get("segments"):
        return_date = _date_part((itineraries[1]["segments"][0].get("departure") or {}).get("at"))

    return {
        "skyscanner": skyscanner_url(origin, destination, departure_date, return_date, cabin_class),
        "kayak": kayak_url(origin, destination, departure_date, return_date, cabin_class),
    }
