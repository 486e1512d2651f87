"""Offer view router: sort/filter derivation and CO₂ context for the results page."""

from fastapi import APIRouter

from visco2fly.schemas.search import InsightsRequest, OfferViewRequest
from visco2fly.services.booking_links import offer_booking_links
from visco2fly.services.co2_insights import (
    cabin_class_options,
    cabin_savings,
    camel_payload,
    carbon_budget,
    co2_equivalents,
    offer_distribution,
    typical_distribution,
)
from visco2fly.services.offer_view import (
    OfferView,
    Range,
    co2_kg_for_class,
    flight_duration_minutes,
    format_duration,
    format_stops,
    stops_count,
)

router = APIRouter()


@router.post("/view")
async def derive_offer_view(req: OfferViewRequest):
    """Emissions-ready offers, sorted and filtered, with bounds and chart points."""
    view = OfferView(req.offers, cabin_class=req.cabin_class, sort_by=req.sort_by)
    if req.filters:
        f = req.filters
        view.set_filters(
            price_range=Range(f.price_range.min, f.price_range.max) if f.price_range else None,
            duration_range=Range(f.duration_range.min, f.duration_range.max) if f.duration_range else None,
            co2_range=Range(f.co2_range.min, f.co2_range.max) if f.co2_range else None,
            stops_filter=f.stops_filter,
        )
    result = view.derive()
    for offer in result["offers"]:
        offer["durationLabel"] = format_duration(flight_duration_minutes(offer))
        offer["stopsLabel"] = format_stops(stops_count(offer))
        offer["bookingLinks"] = offer_booking_links(offer, req.cabin_class)
    return result


@router.post("/insights")
async def offer_insights(req: InsightsRequest):
    """Equivalents, budget share, cabin savings and cabin distribution."""
    co2_min, co2_max = req.co2_min, req.co2_max
    if req.offer is not None and co2_min is None:
        co2_min = co2_kg_for_class(req.offer, req.cabin_class)
        co2_max = co2_min

    response = {
        "co2Min": co2_min,
        "co2Max": co2_max,
        "equivalents": None,
        "carbonBudget": None,
        "cabinSavings": [],
        "distribution": typical_distribution(req.typical_emissions, req.cabin_class),
        "distributionSource": "typical",
    }
    if co2_min:
        response["equivalents"] = {
            "min": camel_payload(co2_equivalents(co2_min)),
            "max": camel_payload(co2_equivalents(co2_max if co2_max is not None else co2_min)),
        }
        response["carbonBudget"] = camel_payload(carbon_budget(co2_min, co2_max))
    if req.offer is not None:
        response["cabinSavings"] = [camel_payload(s) for s in cabin_savings(req.offer)]
        response["distribution"] = offer_distribution(req.offer, req.cabin_class)
        response["distributionSource"] = "offer"
        response["bookingLinks"] = offer_booking_links(req.offer, req.cabin_class)
    return response


@router.get("/cabin-classes")
async def list_cabin_classes():
    return {"data": cabin_class_options()}
