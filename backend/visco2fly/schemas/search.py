from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CabinClass = Literal["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]
SortKey = Literal[
    "co2_lowest",
    "co2_highest",
    "price_lowest",
    "price_highest",
    "duration_shortest",
    "duration_longest",
]
StopsFilter = Literal["any", "0", "1", "2"]


@dataclass(frozen=True)
class SearchParams:
    """Immutable search parameters; identifies a cache entry and a provider query."""

    origin: str
    destination: str
    departure_date: date
    return_date: date | None = None
    adults: int = 1
    cabin_class: str = "ECONOMY"

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None

    def fingerprint_fields(self) -> dict[str, Any]:
        fields = asdict(self)
        fields["departure_date"] = self.departure_date.isoformat()
        fields["return_date"] = self.return_date.isoformat() if self.return_date else None
        return fields


class SearchRequest(BaseModel):
    """Body of POST /date, keyed the way the browser UI sends it."""

    model_config = ConfigDict(populate_by_name=True)

    departure: date
    arrival: date | None = None
    location_departure: str = Field(alias="locationDeparture", min_length=3, max_length=3)
    location_arrival: str = Field(alias="locationArrival", min_length=3, max_length=3)
    adults: int = Field(1, ge=1, le=4)
    cabin_class: CabinClass = Field("ECONOMY", alias="cabinClass")

    @field_validator("location_departure", "location_arrival")
    @classmethod
    def _iata_code(cls, value: str) -> str:
        value = value.strip().upper()
        if not value.isalpha():
            raise ValueError("must be a 3-letter IATA code")
        return value

    @field_validator("arrival", mode="before")
    @classmethod
    def _blank_return_date(cls, value):
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _check_route(self):
        if self.location_departure == self.location_arrival:
            raise ValueError("origin and destination must differ")
        if self.arrival is not None and self.arrival < self.departure:
            raise ValueError("return date must not be before departure date")
        return self

    def to_params(self) -> SearchParams:
        return SearchParams(
            origin=self.location_departure,
            destination=self.location_arrival,
            departure_date=self.departure,
            return_date=self.arrival,
            adults=self.adults,
            cabin_class=self.cabin_class,
        )


class RangeModel(BaseModel):
    min: float
    max: float


class FilterModel(BaseModel):
    price_range: RangeModel | None = Field(None, alias="priceRange")
    duration_range: RangeModel | None = Field(None, alias="durationRange")
    co2_range: RangeModel | None = Field(None, alias="co2Range")
    stops_filter: StopsFilter = Field("any", alias="stopsFilter")

    model_config = ConfigDict(populate_by_name=True)


class OfferViewRequest(BaseModel):
    """Body of POST /offers/view."""

    model_config = ConfigDict(populate_by_name=True)

    offers: list[dict[str, Any]]
    cabin_class: CabinClass = Field("ECONOMY", alias="cabinClass")
    sort_by: SortKey = Field("co2_lowest", alias="sortBy")
    filters: FilterModel | None = None


class InsightsRequest(BaseModel):
    """Body of POST /offers/insights: one hovered offer and/or a CO₂ range."""

    model_config = ConfigDict(populate_by_name=True)

    offer: dict[str, Any] | None = None
    cabin_class: CabinClass = Field("ECONOMY", alias="cabinClass")
    co2_min: float | None = Field(None, alias="co2Min", ge=0)
    co2_max: float | None = Field(None, alias="co2Max", ge=0)
    typical_emissions: dict[str, float] | None = Field(None, alias="typicalEmissions")
