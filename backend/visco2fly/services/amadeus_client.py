"""Amadeus API client: primary flight provider with OAuth2 client-credentials auth."""

import logging
from datetime import datetime, timedelta, timezone

import httpx

from visco2fly.config import settings
from visco2fly.schemas.search import SearchParams
from visco2fly.services.errors import ProviderUnavailable
from visco2fly.services.flight_provider import FlightProvider
from visco2fly.services.normalize import airport_suggestion, normalize_amadeus_offer

logger = logging.getLogger(__name__)


class AmadeusClient(FlightProvider):
    """Adapter for Amadeus Self-Service API."""

    name = "amadeus"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str | None = None,
        max_offers: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = settings.amadeus_client_id if client_id is None else client_id
        self.client_secret = settings.amadeus_client_secret if client_secret is None else client_secret
        self.base_url = base_url or settings.amadeus_base_url
        self.max_offers = max_offers or settings.amadeus_max_offers
        self.timeout = timeout or settings.provider_timeout_seconds
        self._transport = transport
        self._token: str | None = None
        self._token_expires: datetime | None = None
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _ensure_token(self):
        """Get or refresh OAuth2 token."""
        if not self.client_id or not self.client_secret:
            raise ProviderUnavailable(self.name, "credentials not configured")

        if self._token and self._token_expires and datetime.now(timezone.utc) < self._token_expires:
            return

        client = await self._get_client()
        resp = await client.post(
            "/v1/security/oauth2/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        resp.raise_for_status()
        data = resp.json()
        self._token = data["access_token"]
        self._token_expires = datetime.now(timezone.utc) + timedelta(
            seconds=data.get("expires_in", 1799) - 60
        )
        logger.info("Amadeus token refreshed")

    async def _get(self, path: str, params: dict) -> dict:
        try:
            await self._ensure_token()
            client = await self._get_client()
            resp = await client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {self._token}"},
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                self._token = None
            raise ProviderUnavailable(
                self.name, f"HTTP {e.response.status_code} from {path}", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailable(self.name, f"request error: {e}") from e
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed response: {e}") from e

    async def search_flights(self, params: SearchParams) -> list[dict]:
        query = {
            "originLocationCode": params.origin,
            "destinationLocationCode": params.destination,
            "departureDate": params.departure_date.isoformat(),
            "adults": params.adults,
            "max": self.max_offers,
        }
        if params.cabin_class:
            query["travelClass"] = params.cabin_class
        if params.return_date:
            query["returnDate"] = params.return_date.isoformat()

        data = await self._get("/v2/shopping/flight-offers", query)
        try:
            return [normalize_amadeus_offer(offer) for offer in data.get("data", [])]
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed flight offer: {e}") from e

    async def search_airports(self, keyword: str) -> list[dict]:
        data = await self._get(
            "/v1/reference-data/locations",
            {"keyword": keyword, "subType": "AIRPORT"},
        )
        try:
            suggestions = []
            for loc in data.get("data", []):
                address = loc.get("address") or {}
                suggestions.append(
                    airport_suggestion(
                        loc["iataCode"],
                        loc.get("name"),
                        address.get("cityName"),
                        address.get("countryName"),
                    )
                )
            return suggestions
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed location: {e}") from e

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


amadeus_client = AmadeusClient()
