from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Amadeus (primary flight provider)
    amadeus_client_id: str = ""
    amadeus_client_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"
    amadeus_max_offers: int = 50

    # Duffel (secondary flight provider)
    duffel_api_key: str = ""
    duffel_base_url: str = "https://api.duffel.com"
    duffel_version: str = "v2"
    duffel_offer_limit: int = 40
    duffel_max_connections: int = 2

    # Google Travel Impact Model
    google_api_key: str = ""
    travel_impact_base_url: str = "https://travelimpactmodel.googleapis.com"

    # Search
    search_cache_ttl_seconds: float = 30.0
    provider_timeout_seconds: float = 30.0

    # Logging
    log_dir: str = ""

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
