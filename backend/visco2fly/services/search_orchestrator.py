"""Search orchestrator: admission control, cache, provider fallback, grouping and emissions."""

import enum
import logging
import time

from visco2fly.schemas.search import SearchParams
from visco2fly.services.amadeus_client import amadeus_client
from visco2fly.services.cache_service import CacheService
from visco2fly.services.duffel_client import duffel_client
from visco2fly.services.emissions_client import TravelImpactClient, travel_impact_client
from visco2fly.services.emissions_enrichment import enrich_offers
from visco2fly.services.errors import (
    AdmissionRejected,
    AllProvidersFailed,
    SearchFailed,
    TypicalEmissionsUnavailable,
)
from visco2fly.services.flight_provider import ProviderGateway

logger = logging.getLogger(__name__)


class SearchStatus(str, enum.Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class SearchState:
    """Single-flight gate. Only the transitions below touch the status."""

    def __init__(self):
        self.status = SearchStatus.IDLE

    @property
    def in_progress(self) -> bool:
        return self.status is SearchStatus.SEARCHING

    def begin(self):
        if self.status is SearchStatus.SEARCHING:
            raise AdmissionRejected()
        self.status = SearchStatus.SEARCHING

    def resolve(self):
        self.status = SearchStatus.RESOLVED

    def reject(self):
        self.status = SearchStatus.REJECTED

    def release(self):
        # A search that never reached a terminal state still frees the gate.
        if self.status is SearchStatus.SEARCHING:
            self.status = SearchStatus.IDLE


class SearchOrchestrator:
    """Coordinates one flight search at a time across providers and emissions."""

    def __init__(
        self,
        gateway: ProviderGateway,
        emissions: TravelImpactClient,
        cache: CacheService | None = None,
    ):
        self.gateway = gateway
        self.emissions = emissions
        self.cache = cache or CacheService()
        self.state = SearchState()

    async def search(self, params: SearchParams) -> dict:
        """
        Execute a flight search.

        Returns dict with: offers, typicalEmissions. Raises AdmissionRejected
        while another search is running, AllProvidersFailed when no provider
        answered, SearchFailed for anything unexpected.
        """
        self.state.begin()
        try:
            cached = self.cache.get_search(params)
            if cached is not None:
                logger.info(f"Cache hit for {params.origin}->{params.destination} on {params.departure_date}")
                self.state.resolve()
                return cached

            result = await self._run(params)
            self.cache.set_search(params, result)
            logger.info(f"Cached search for {params.origin}->{params.destination} ({len(self.cache)} entries)")
            self.state.resolve()
            # Misses return the same encoding a later hit would.
            return self.cache.get_search(params) or result
        except AllProvidersFailed:
            self.state.reject()
            raise
        except Exception as e:
            self.state.reject()
            logger.exception(f"Flight search failed unexpectedly: {e}")
            raise SearchFailed() from e
        finally:
            self.state.release()

    async def _run(self, params: SearchParams) -> dict:
        start_time = time.monotonic()

        typical = await self._typical_emissions(params)
        offers = await self.gateway.search_flights(params)

        enriched = 0
        if offers:
            enriched = await enrich_offers(self.emissions, offers)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Search {params.origin}->{params.destination}: {len(offers)} offers, "
            f"{enriched} itineraries with emissions in {elapsed_ms}ms"
        )
        return {"offers": offers, "typicalEmissions": typical}

    async def _typical_emissions(self, params: SearchParams) -> dict | None:
        try:
            return await self.emissions.compute_typical_emissions(params.origin, params.destination)
        except TypicalEmissionsUnavailable as e:
            logger.warning(f"Typical emissions unavailable for {params.origin}->{params.destination}: {e}")
            return None

    async def search_airports(self, keyword: str) -> list[dict]:
        return await self.gateway.search_airports(keyword)

    async def close(self):
        await self.gateway.close()
        await self.emissions.close()


search_orchestrator = SearchOrchestrator(
    gateway=ProviderGateway([amadeus_client, duffel_client]),
    emissions=travel_impact_client,
)
