"""CO₂ context for a flight: everyday equivalents, carbon budget share, cabin comparisons."""

import math
from dataclasses import asdict, dataclass

from visco2fly.services.normalize import CABIN_EMISSIONS_KEYS, CABIN_LABELS, CABIN_ORDER, EMISSIONS_KEY_CABINS
from visco2fly.services.offer_view import co2_kg_for_class

# UK grid intensity, kg CO₂ per kWh
UK_KGCO2_PER_KWH = 0.23
LIGHT_BULB_KWH_PER_HOUR = 0.1
LAUNDRY_KWH_PER_CYCLE = 0.6
CAR_KGCO2_PER_KM = 0.132
SMARTPHONE_CHARGE_KWH = 0.02
SOLAR_PANEL_KW = 0.35
TREE_ABSORPTION_PER_YEAR_KG = 25

ANNUAL_BUDGET_KG = 2300


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class Equivalents:
    light_bulb_hours: float
    laundry_washes: float
    driving_km: float


def co2_equivalents(co2_kg: float | None) -> Equivalents:
    """Everyday activities emitting the same amount of CO₂."""
    if not co2_kg or co2_kg <= 0:
        return Equivalents(0, 0, 0)
    return Equivalents(
        light_bulb_hours=co2_kg / (LIGHT_BULB_KWH_PER_HOUR * UK_KGCO2_PER_KWH),
        laundry_washes=co2_kg / (LAUNDRY_KWH_PER_CYCLE * UK_KGCO2_PER_KWH),
        driving_km=co2_kg / CAR_KGCO2_PER_KM,
    )


@dataclass
class CarbonBudget:
    flight_co2_kg: float
    budget_percentage: float
    remaining_tonnes: float
    months_equivalent: float
    impact_level: str


def impact_level(percentage: float) -> str:
    if percentage < 5:
        return "low"
    if percentage < 15:
        return "medium"
    return "high"


def carbon_budget(co2_min: float, co2_max: float | None = None, annual_budget_kg: float = ANNUAL_BUDGET_KG) -> CarbonBudget:
    """Share of a personal annual budget taken by one flight (midpoint of a range)."""
    flight_co2 = (co2_min + co2_max) / 2 if co2_max else co2_min
    percentage = flight_co2 / annual_budget_kg * 100
    return CarbonBudget(
        flight_co2_kg=flight_co2,
        budget_percentage=percentage,
        remaining_tonnes=(annual_budget_kg - flight_co2) / 1000,
        months_equivalent=flight_co2 / annual_budget_kg * 12,
        impact_level=impact_level(percentage),
    )


@dataclass
class CabinSavings:
    base_class: str
    comparison_class: str
    co2_difference_kg: float
    smartphone_charges: int
    solar_panel_hours: int
    trees_per_year: int


def savings_detail(co2_difference_kg: float, comparison_class: str, base_class: str = "ECONOMY") -> CabinSavings:
    kwh = co2_difference_kg / UK_KGCO2_PER_KWH
    return CabinSavings(
        base_class=base_class,
        comparison_class=comparison_class,
        co2_difference_kg=co2_difference_kg,
        smartphone_charges=_js_round(kwh / SMARTPHONE_CHARGE_KWH),
        solar_panel_hours=_js_round(kwh / SOLAR_PANEL_KW),
        trees_per_year=_js_round(co2_difference_kg / TREE_ABSORPTION_PER_YEAR_KG),
    )


def cabin_savings(offer: dict) -> list[CabinSavings]:
    """What flying economy saves over business and first on the same itinerary.

    First is skipped when it reports the same figure as business.
    """
    eco = co2_kg_for_class(offer, "ECONOMY")
    bus = co2_kg_for_class(offer, "BUSINESS")
    fir = co2_kg_for_class(offer, "FIRST")

    savings = []
    if eco and bus and bus - eco > 0:
        savings.append(savings_detail(bus - eco, "BUSINESS"))
    if eco and fir and fir != bus and fir - eco > 0:
        savings.append(savings_detail(fir - eco, "FIRST"))
    return savings


def _distribution_row(cabin: str, co2: float, selected: str | None) -> dict:
    return {
        "cabinClass": cabin,
        "displayClass": CABIN_LABELS[cabin],
        "co2": co2,
        "selected": cabin == selected,
    }


def offer_distribution(offer: dict, selected_cabin: str | None = None) -> list[dict]:
    """Per-cabin CO₂ (kg) for one offer, over the cabins that reported data."""
    business = co2_kg_for_class(offer, "BUSINESS")
    first = co2_kg_for_class(offer, "FIRST")
    drop_first = business is not None and first is not None and business == first

    rows = []
    available = offer.get("availableCabinClasses") or []
    for cabin in CABIN_ORDER:
        if cabin not in available:
            continue
        if drop_first and cabin == "FIRST":
            continue
        co2 = co2_kg_for_class(offer, cabin)
        if co2 and co2 > 0:
            rows.append(_distribution_row(cabin, co2, selected_cabin))
    return rows


def typical_distribution(typical_emissions: dict | None, selected_cabin: str | None = None) -> list[dict]:
    """Per-cabin CO₂ (kg) for the route's typical emissions, without duplicated cabins."""
    if not typical_emissions:
        return []

    values = {}
    for key, grams in typical_emissions.items():
        cabin = EMISSIONS_KEY_CABINS.get(key)
        if cabin is None or not isinstance(grams, (int, float)):
            continue
        if grams / 1000 > 0:
            values[cabin] = grams / 1000

    if "FIRST" in values and values.get("BUSINESS") == values["FIRST"]:
        del values["FIRST"]
    if "PREMIUM_ECONOMY" in values and values["PREMIUM_ECONOMY"] in (values.get("BUSINESS"), values.get("ECONOMY")):
        del values["PREMIUM_ECONOMY"]

    return [_distribution_row(c, values[c], selected_cabin) for c in CABIN_ORDER if c in values]


def cabin_class_options() -> list[dict]:
    return [{"value": c, "label": CABIN_LABELS[c], "emissionsKey": CABIN_EMISSIONS_KEYS[c]} for c in CABIN_ORDER]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def camel_payload(item) -> dict:
    """JSON body for an insight dataclass, with camelCase keys."""
    return {_camel(k): v for k, v in asdict(item).items()}
