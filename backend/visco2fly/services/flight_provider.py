"""Flight provider interface and the primary -> secondary fallback gateway."""

import logging
from abc import ABC, abstractmethod

from visco2fly.schemas.search import SearchParams
from visco2fly.services.errors import AllProvidersFailed, ProviderUnavailable

logger = logging.getLogger(__name__)

MIN_AIRPORT_KEYWORD_LENGTH = 2


class FlightProvider(ABC):
    """One flight-data source. Implementations return canonical offers only."""

    name: str = "provider"

    @abstractmethod
    async def search_flights(self, params: SearchParams) -> list[dict]:
        """Return canonical offers; raise ProviderUnavailable on any failure."""

    @abstractmethod
    async def search_airports(self, keyword: str) -> list[dict]:
        """Return airport suggestions; raise ProviderUnavailable on any failure."""

    async def close(self):
        return None


class ProviderGateway:
    """Tries providers in order; the next one is only asked after the previous failed."""

    def __init__(self, providers: list[FlightProvider]):
        self.providers = providers

    async def search_flights(self, params: SearchParams) -> list[dict]:
        failures: list[ProviderUnavailable] = []
        for provider in self.providers:
            try:
                offers = await provider.search_flights(params)
            except ProviderUnavailable as e:
                logger.warning(f"Flight search via {provider.name} failed, trying next provider: {e}")
                failures.append(e)
                continue
            logger.info(
                f"{provider.name}: {len(offers)} offers for "
                f"{params.origin}->{params.destination} on {params.departure_date}"
            )
            return offers

        logger.error(f"All flight providers failed for {params.origin}->{params.destination}")
        raise AllProvidersFailed("Failed to fetch flight offers from both APIs.", failures)

    async def search_airports(self, keyword: str) -> list[dict]:
        keyword = (keyword or "").strip()
        if len(keyword) < MIN_AIRPORT_KEYWORD_LENGTH:
            return []

        failures: list[ProviderUnavailable] = []
        for provider in self.providers:
            try:
                return await provider.search_airports(keyword)
            except ProviderUnavailable as e:
                logger.warning(f"Airport search via {provider.name} failed, trying next provider: {e}")
                failures.append(e)

        logger.error(f"All providers failed airport search for '{keyword}'")
        raise AllProvidersFailed("Failed to search airports with both APIs", failures)

    async def close(self):
        for provider in self.providers:
            await provider.close()
