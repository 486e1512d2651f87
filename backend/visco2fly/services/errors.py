"""Service-layer exceptions shared by providers, enrichment and the orchestrator."""


class ProviderUnavailable(Exception):
    """A single flight provider could not answer (network, HTTP status, payload, credentials)."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


class AllProvidersFailed(Exception):
    """Every configured provider failed for the same request."""

    def __init__(self, message: str, failures: list[ProviderUnavailable] | None = None):
        super().__init__(message)
        self.message = message
        self.failures = failures or []


class EmissionsUnavailable(Exception):
    """Per-itinerary emissions lookup failed."""


class TypicalEmissionsUnavailable(EmissionsUnavailable):
    """Route-level typical emissions lookup failed."""


class AdmissionRejected(Exception):
    """A search is already in flight; the new one is refused."""

    def __init__(self, message: str = "Flight search already in progress"):
        super().__init__(message)
        self.message = message


class SearchFailed(Exception):
    """Unexpected failure while processing a search."""

    def __init__(self, message: str = "Failed to process flight search."):
        super().__init__(message)
        self.message = message
