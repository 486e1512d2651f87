"""Offer derivation pipeline: emissions-ready subset, filter bounds, sort and filter.

Everything here is pure over canonical offers except ``OfferView``, which
keeps the user's sort/filter choices and re-derives on each change.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import timezone

from visco2fly.services.normalize import cabin_key, parse_duration_minutes, parse_timestamp

SORT_KEYS = (
    "co2_lowest",
    "co2_highest",
    "price_lowest",
    "price_highest",
    "duration_shortest",
    "duration_longest",
)
STOPS_FILTERS = ("any", "0", "1", "2")


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _number(value) -> float:
    """Numeric value with NaN/None collapsed to 0."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(value) else value


# ─── Per-offer measures ───


def co2_kg_for_class(offer: dict, cabin_class: str) -> float | None:
    """CO₂ per passenger in kg (1 decimal) for a cabin, or None if not positive."""
    grams = (offer.get("emissionsGramsPerPax") or {}).get(cabin_key(cabin_class))
    if isinstance(grams, bool) or not isinstance(grams, (int, float)):
        return None
    if math.isnan(grams) or grams <= 0:
        return None
    return _round_half_up(grams / 1000, 1)


def price_for_class(offer: dict, cabin_class: str | None = None) -> float:
    """Offer price; the canonical shape carries one price for the searched cabin."""
    return _number((offer.get("price") or {}).get("total"))


def flight_duration_minutes(offer: dict) -> float:
    """Total minutes across itineraries.

    Uses each itinerary's own duration, falling back to last arrival minus
    first departure when the provider left it out.
    """
    total = 0.0
    for itin in offer.get("itineraries") or []:
        segments = itin.get("segments") or []
        if not segments:
            continue
        if itin.get("duration"):
            total += parse_duration_minutes(itin["duration"])
            continue
        departed = parse_timestamp((segments[0].get("departure") or {}).get("at"))
        arrived = parse_timestamp((segments[-1].get("arrival") or {}).get("at"))
        if departed is None or arrived is None:
            continue
        try:
            minutes = (arrived - departed).total_seconds() / 60
        except TypeError:
            # naive vs aware timestamps
            continue
        if minutes > 0:
            total += minutes
    return total


def stops_count(offer: dict) -> int:
    """Stops on the outbound itinerary."""
    itineraries = offer.get("itineraries") or []
    if not itineraries:
        return 0
    return max(len(itineraries[0].get("segments") or []) - 1, 0)


def _key_timestamp(value) -> str:
    """Second-precision timestamp for keys; offset-bearing values shift to UTC."""
    parsed = parse_timestamp(value) if isinstance(value, str) else None
    if parsed is None:
        return value[:19] if isinstance(value, str) else ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.isoformat(timespec="seconds")


def flight_display_key(offer: dict) -> str:
    """UI identity: first carrier+number, first departure and last arrival per itinerary."""
    keys = []
    for itin in offer.get("itineraries") or []:
        segments = itin.get("segments") or []
        if not segments:
            continue
        first, last = segments[0], segments[-1]
        departed = _key_timestamp((first.get("departure") or {}).get("at"))
        arrived = _key_timestamp((last.get("arrival") or {}).get("at"))
        keys.append(f"{first.get('carrierCode')}{first.get('number')}-{departed}-{arrived}")
    return "|".join(keys)


def flight_numbers_label(offer: dict) -> str:
    """``[BA1, BA2]`` for one itinerary, ``{[..], [..]}`` for a round trip."""
    journeys = [
        "[" + ", ".join(f"{s.get('carrierCode')}{s.get('number')}" for s in itin.get("segments") or []) + "]"
        for itin in offer.get("itineraries") or []
    ]
    if len(journeys) > 1:
        return "{" + ", ".join(journeys) + "}"
    return journeys[0] if journeys else ""


def format_duration(minutes: float) -> str:
    return f"{int(minutes // 60)}h {int(minutes % 60)}m"


def format_stops(stops: int) -> str:
    if stops == 0:
        return "Direct"
    if stops == 1:
        return "1 stop"
    return f"{stops} stops"


# ─── Set-level derivation ───


@dataclass
class Range:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass
class FilterBounds:
    price: Range
    duration: Range
    co2: Range


def default_bounds() -> FilterBounds:
    return FilterBounds(price=Range(0, 10000), duration=Range(0, 1440), co2=Range(0, 1000))


@dataclass
class FilterState:
    price_range: Range = field(default_factory=lambda: Range(0, 10000))
    duration_range: Range = field(default_factory=lambda: Range(0, 1440))
    co2_range: Range = field(default_factory=lambda: Range(0, 1000))
    stops_filter: str = "any"

    def __post_init__(self):
        if self.stops_filter not in STOPS_FILTERS:
            raise ValueError(f"Unknown stops filter: {self.stops_filter}")

    @classmethod
    def from_bounds(cls, bounds: FilterBounds, stops_filter: str = "any") -> "FilterState":
        return cls(
            price_range=Range(bounds.price.min, bounds.price.max),
            duration_range=Range(bounds.duration.min, bounds.duration.max),
            co2_range=Range(bounds.co2.min, bounds.co2.max),
            stops_filter=stops_filter,
        )


def emissions_ready(offers: list[dict], cabin_class: str) -> list[dict]:
    """Offers with complete emissions and a positive CO₂ value for the cabin."""
    return [
        o for o in offers
        if o.get("emissionsCompleteness")
        and o.get("emissionsGramsPerPax")
        and co2_kg_for_class(o, cabin_class) is not None
    ]


def compute_bounds(offers: list[dict], cabin_class: str) -> FilterBounds:
    if not offers:
        return default_bounds()

    prices = [p for p in (price_for_class(o, cabin_class) for o in offers) if p > 0]
    durations = [d for d in (flight_duration_minutes(o) for o in offers) if d > 0]
    co2s = [c for c in (co2_kg_for_class(o, cabin_class) for o in offers) if c and c > 0]

    if not prices or not durations or not co2s:
        return default_bounds()

    return FilterBounds(
        price=Range(math.floor(min(prices)), math.ceil(max(prices))),
        duration=Range(math.floor(min(durations)), math.ceil(max(durations))),
        co2=Range(math.floor(min(co2s)), math.ceil(max(co2s))),
    )


def sort_offers(offers: list[dict], sort_by: str, cabin_class: str) -> list[dict]:
    """Stable numeric sort; missing values sort as 0."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}")

    measure, direction = sort_by.rsplit("_", 1)
    if measure == "co2":
        def value(o):
            return _number(co2_kg_for_class(o, cabin_class))
    elif measure == "price":
        def value(o):
            return _number(price_for_class(o, cabin_class))
    else:
        def value(o):
            return _number(flight_duration_minutes(o))

    return sorted(offers, key=value, reverse=direction in ("highest", "longest"))


def stops_match(stops: int, stops_filter: str) -> bool:
    if stops_filter == "any":
        return True
    if stops_filter == "2":
        return stops >= 2
    return stops == int(stops_filter)


def apply_filters(offers: list[dict], filters: FilterState, cabin_class: str) -> list[dict]:
    """AND of inclusive price, duration and CO₂ ranges plus the stops filter."""
    kept = []
    for o in offers:
        co2 = co2_kg_for_class(o, cabin_class)
        if co2 is None:
            continue
        if not filters.price_range.contains(price_for_class(o, cabin_class)):
            continue
        if not filters.duration_range.contains(flight_duration_minutes(o)):
            continue
        if not filters.co2_range.contains(co2):
            continue
        if not stops_match(stops_count(o), filters.stops_filter):
            continue
        kept.append(o)
    return kept


# ─── Chart data ───


def chart_points(offers: list[dict], cabin_class: str) -> list[dict]:
    points = []
    for o in offers:
        co2 = co2_kg_for_class(o, cabin_class)
        if co2 is None:
            continue
        points.append({
            "id": flight_display_key(o),
            "co2": co2,
            "price": price_for_class(o, cabin_class),
            "duration": flight_duration_minutes(o),
            "flightNumbers": flight_numbers_label(o),
        })
    return points


def quantile(sorted_values: list[float], p: float) -> float | None:
    """Linear-interpolated quantile of an ascending list."""
    if not sorted_values:
        return None
    i = (len(sorted_values) - 1) * p
    lo = math.floor(i)
    hi = min(lo + 1, len(sorted_values) - 1)
    return sorted_values[lo] + (sorted_values[hi] - sorted_values[lo]) * (i - lo)


def co2_thresholds(points: list[dict]) -> dict | None:
    """33rd/67th percentile split of CO₂ values; needs at least three points."""
    if len(points) < 3:
        return None
    values = sorted(p["co2"] for p in points)
    return {"low": quantile(values, 0.33), "high": quantile(values, 0.67)}


def co2_zone(co2: float, thresholds: dict | None) -> str:
    if not thresholds:
        return "typical"
    if co2 <= thresholds["low"]:
        return "below"
    if co2 >= thresholds["high"]:
        return "above"
    return "typical"


def group_chart_points(points: list[dict], axis: str = "price") -> list[dict]:
    """Merge points that land on the same (axis, co2) coordinate, rounded to 2 decimals."""
    if axis not in ("price", "duration"):
        raise ValueError(f"Unknown chart axis: {axis}")

    thresholds = co2_thresholds(points)
    groups: dict[tuple[float, float], dict] = {}
    for p in points:
        x = _round_half_up(p[axis], 2)
        y = _round_half_up(p["co2"], 2)
        group = groups.get((x, y))
        if group is None:
            group = groups[(x, y)] = {
                axis: x,
                "co2": y,
                "price": x if axis == "price" else p["price"],
                "duration": x if axis == "duration" else p["duration"],
                "zone": co2_zone(y, thresholds),
                "ids": [],
                "flightNumbers": [],
                "count": 0,
            }
        group["ids"].append(p["id"])
        group["flightNumbers"].append(p["flightNumbers"])
        group["count"] += 1
    return list(groups.values())


# ─── Stateful view ───


class OfferView:
    """Holds offers plus sort/filter choices and re-derives on every change.

    Ranges are re-initialized to the data bounds whenever the
    emissions-ready set changes size or its bounds move.
    """

    def __init__(self, offers: list[dict] | None = None, cabin_class: str = "ECONOMY", sort_by: str = "co2_lowest"):
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")
        self.cabin_class = cabin_class
        self.sort_by = sort_by
        self.filters = FilterState()
        self._offers: list[dict] = []
        self._ready: list[dict] = []
        self._bounds = default_bounds()
        self._last_size: int | None = None
        self.set_offers(offers or [])

    @property
    def bounds(self) -> FilterBounds:
        return self._bounds

    @property
    def ready_offers(self) -> list[dict]:
        return self._ready

    def set_offers(self, offers: list[dict], cabin_class: str | None = None):
        if cabin_class:
            self.cabin_class = cabin_class
        self._offers = list(offers)
        self._rederive_set()

    def set_sort(self, sort_by: str):
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")
        self.sort_by = sort_by

    def set_filters(
        self,
        price_range: Range | None = None,
        duration_range: Range | None = None,
        co2_range: Range | None = None,
        stops_filter: str | None = None,
    ):
        if price_range is not None:
            self.filters.price_range = price_range
        if duration_range is not None:
            self.filters.duration_range = duration_range
        if co2_range is not None:
            self.filters.co2_range = co2_range
        if stops_filter is not None:
            if stops_filter not in STOPS_FILTERS:
                raise ValueError(f"Unknown stops filter: {stops_filter}")
            self.filters.stops_filter = stops_filter

    def _rederive_set(self):
        ready = emissions_ready(self._offers, self.cabin_class)
        bounds = compute_bounds(ready, self.cabin_class)
        changed = len(ready) != self._last_size or bounds != self._bounds
        self._ready = ready
        self._bounds = bounds
        self._last_size = len(ready)
        if changed and ready:
            self.filters = FilterState.from_bounds(bounds, self.filters.stops_filter)

    def visible_offers(self) -> list[dict]:
        ordered = sort_offers(self._ready, self.sort_by, self.cabin_class)
        return apply_filters(ordered, self.filters, self.cabin_class)

    def derive(self, chart_axis: str = "price") -> dict:
        visible = self.visible_offers()
        return {
            "offers": visible,
            "totalCount": len(self._offers),
            "withEmissionsCount": len(self._ready),
            "withoutEmissionsCount": len(self._offers) - len(self._ready),
            "bounds": asdict(self._bounds),
            "filters": {
                "priceRange": asdict(self.filters.price_range),
                "durationRange": asdict(self.filters.duration_range),
                "co2Range": asdict(self.filters.co2_range),
                "stopsFilter": self.filters.stops_filter,
            },
            "chartPoints": group_chart_points(chart_points(visible, self.cabin_class), chart_axis),
        }
