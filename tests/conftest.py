from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from country_cache.config import Config
from country_cache.core.repository import CountryRepository
from country_cache.database import build_engine, build_session_factory, init_db

COUNTRIES_URL = "https://countries.test/v2/all"
RATES_URL = "https://rates.test/v6/latest/USD"

SAMPLE_COUNTRIES = [
    {
        "name": "Nigeria",
        "capital": "Abuja",
        "region": "Africa",
        "population": 206139589,
        "flag": "https://flagcdn.com/ng.svg",
        "currencies": [{"code": "NGN", "name": "Nigerian naira", "symbol": "₦"}],
    },
    {
        "name": "Ghana",
        "capital": "Accra",
        "region": "Africa",
        "population": 31072945,
        "flag": "https://flagcdn.com/gh.svg",
        "currencies": [{"code": "GHS"}],
    },
    {
        "name": "United Kingdom of Great Britain and Northern Ireland",
        "capital": "London",
        "region": "Europe",
        "population": 67215293,
        "flag": "https://flagcdn.com/gb.svg",
        "currencies": [{"code": "GBP"}],
    },
    {
        "name": "Antarctica",
        "region": "Polar",
        "population": 1000,
        "flag": "https://flagcdn.com/aq.svg",
    },
    {
        "name": "Bouvet Island",
        "region": "Antarctic Ocean",
        "population": 0,
        "currencies": [{"code": "NOK"}],
    },
]

SAMPLE_RATES = {"NGN": 1600.23, "GHS": 15.2, "EUR": 0.92}


@pytest.fixture
def as_of() -> datetime:
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config(tmp_path):
    class TestConfig(Config):
        database_url = f"sqlite:///{tmp_path / 'countries.db'}"
        countries_api_url = COUNTRIES_URL
        exchange_rate_api_url = RATES_URL
        cache_dir = str(tmp_path / "cache")
        http_timeout = 5.0

    return TestConfig


@pytest.fixture
def repository(config) -> CountryRepository:
    engine = build_engine(config.database_url)
    init_db(engine)
    yield CountryRepository(build_session_factory(engine))
    engine.dispose()


class FakeSources:
    """Serves canned JSON for the two source URLs through httpx.MockTransport."""

    def __init__(self, countries=None, rates=None):
        self.countries = SAMPLE_COUNTRIES if countries is None else countries
        self.rates = SAMPLE_RATES if rates is None else rates
        self.countries_status = 200
        self.rates_status = 200
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url == COUNTRIES_URL:
            return httpx.Response(self.countries_status, json=self.countries)
        if url == RATES_URL:
            return httpx.Response(
                self.rates_status, json={"result": "success", "rates": self.rates}
            )
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_sources() -> FakeSources:
    return FakeSources()
