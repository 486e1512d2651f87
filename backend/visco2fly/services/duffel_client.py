"""Duffel API client: secondary flight provider, translated to the canonical offer shape."""

import logging

import httpx

from visco2fly.config import settings
from visco2fly.schemas.search import SearchParams
from visco2fly.services.errors import ProviderUnavailable
from visco2fly.services.flight_provider import FlightProvider
from visco2fly.services.normalize import airport_suggestion, duffel_offer_to_canonical

logger = logging.getLogger(__name__)


class DuffelClient(FlightProvider):
    """Adapter for the Duffel Flights API (offer requests + offer listing)."""

    name = "duffel"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        version: str | None = None,
        offer_limit: int | None = None,
        max_connections: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.duffel_api_key if api_key is None else api_key
        self.base_url = base_url or settings.duffel_base_url
        self.version = version or settings.duffel_version
        self.offer_limit = offer_limit or settings.duffel_offer_limit
        self.max_connections = settings.duffel_max_connections if max_connections is None else max_connections
        self.timeout = timeout or settings.provider_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Duffel-Version": self.version,
                    "Accept": "application/json",
                },
            )
        return self._client

    async def _call(self, method: str, path: str, **kwargs) -> dict:
        if not self.api_key:
            raise ProviderUnavailable(self.name, "API key not configured")
        client = await self._get_client()
        try:
            resp = await client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(
                self.name, f"HTTP {e.response.status_code} from {path}", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailable(self.name, f"request error: {e}") from e
        except (ValueError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed response: {e}") from e

    def build_offer_request(self, params: SearchParams) -> dict:
        slices = [
            {
                "origin": params.origin,
                "destination": params.destination,
                "departure_date": params.departure_date.isoformat(),
            }
        ]
        if params.return_date:
            slices.append(
                {
                    "origin": params.destination,
                    "destination": params.origin,
                    "departure_date": params.return_date.isoformat(),
                }
            )
        return {
            "slices": slices,
            "passengers": [{"type": "adult"} for _ in range(params.adults)],
            "max_connections": self.max_connections,
            "cabin_class": params.cabin_class.lower(),
        }

    async def search_flights(self, params: SearchParams) -> list[dict]:
        created = await self._call(
            "POST",
            "/air/offer_requests",
            params={"return_offers": "false"},
            json={"data": self.build_offer_request(params)},
        )
        try:
            offer_request_id = created["data"]["id"]
        except (KeyError, TypeError) as e:
            raise ProviderUnavailable(self.name, f"offer request without id: {e}") from e

        listed = await self._call(
            "GET",
            "/air/offers",
            params={"offer_request_id": offer_request_id, "limit": self.offer_limit},
        )
        try:
            return [duffel_offer_to_canonical(offer) for offer in listed.get("data", [])]
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed offer: {e}") from e

    async def search_airports(self, keyword: str) -> list[dict]:
        data = await self._call("GET", "/places/suggestions", params={"query": keyword})
        try:
            suggestions = []
            for place in data.get("data", []):
                if place.get("type") != "airport":
                    continue
                city = place.get("city") or {}
                suggestions.append(
                    airport_suggestion(
                        place["iata_code"],
                        place.get("name"),
                        city.get("name") or place.get("city_name"),
                        (city.get("country") or {}).get("name"),
                    )
                )
            return suggestions
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed place: {e}") from e

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


duffel_client = DuffelClient()
