"""Google Travel Impact Model client: per-flight and typical route emissions."""

import logging

import httpx

from visco2fly.config import settings
from visco2fly.services.errors import EmissionsUnavailable, TypicalEmissionsUnavailable

logger = logging.getLogger(__name__)


class TravelImpactClient:
    """Adapter for travelimpactmodel.googleapis.com (API key in query string)."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.google_api_key if api_key is None else api_key
        self.base_url = base_url or settings.travel_impact_base_url
        self.timeout = timeout or settings.provider_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _post(self, path: str, body: dict, error_cls: type[EmissionsUnavailable]) -> dict:
        if not self.api_key:
            raise error_cls("Google API key not configured")
        client = await self._get_client()
        try:
            resp = await client.post(path, params={"key": self.api_key}, json=body)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise error_cls(f"HTTP {e.response.status_code} from {path}") from e
        except httpx.RequestError as e:
            raise error_cls(f"request error: {e}") from e
        except (ValueError, TypeError, AttributeError) as e:
            raise error_cls(f"malformed response: {e}") from e

    async def compute_flight_emissions(self, flights: list[dict]) -> list[dict]:
        """One request for all segments of an itinerary; returns ``flightEmissions``."""
        data = await self._post(
            "/v1/flights:computeFlightEmissions",
            {"flights": flights},
            EmissionsUnavailable,
        )
        emissions = data.get("flightEmissions") if isinstance(data, dict) else None
        if not emissions:
            return []
        if not isinstance(emissions, list) or not all(isinstance(e, dict) for e in emissions):
            raise EmissionsUnavailable("malformed flightEmissions")
        return emissions

    async def compute_typical_emissions(self, origin: str, destination: str) -> dict | None:
        """Typical grams-per-passenger by cabin for a market, or None if absent."""
        data = await self._post(
            "/v1/flights:computeTypicalFlightEmissions",
            {"markets": [{"origin": origin, "destination": destination}]},
            TypicalEmissionsUnavailable,
        )
        typical = data.get("typicalFlightEmissions") if isinstance(data, dict) else None
        if not typical:
            return None
        if not isinstance(typical, list) or not isinstance(typical[0], dict):
            raise TypicalEmissionsUnavailable("malformed typicalFlightEmissions")
        grams = typical[0].get("emissionsGramsPerPax")
        if grams is not None and not isinstance(grams, dict):
            raise TypicalEmissionsUnavailable("malformed emissionsGramsPerPax")
        return grams or None

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


travel_impact_client = TravelImpactClient()
