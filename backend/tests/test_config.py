from visco2fly.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("SEARCH_CACHE_TTL_SECONDS", raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.search_cache_ttl_seconds == 30
    assert cfg.duffel_offer_limit == 40
    assert cfg.amadeus_base_url == "https://test.api.amadeus.com"


def test_env_override(monkeypatch):
    monkeypatch.setenv("SEARCH_CACHE_TTL_SECONDS", "5")
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "12.5")
    cfg = Settings(_env_file=None)
    assert cfg.search_cache_ttl_seconds == 5
    assert cfg.provider_timeout_seconds == 12.5


def test_cors_origin_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    assert Settings(_env_file=None).cors_origin_list == ["http://a.test", "http://b.test"]
