"""Fetch wrappers for the two external data sources.

Each adapter issues exactly one GET on the client it is handed. Retries and
timeouts belong to whoever configures that client.
"""

import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from country_cache.exceptions import SourceUnavailableError
from country_cache.schemas import RatesPayload

logger = logging.getLogger(__name__)

COUNTRIES_SOURCE = "REST Countries API"
RATES_SOURCE = "Exchange Rate API"


async def _get_json(client: httpx.AsyncClient, url: str, source: str) -> Any:
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException:
        raise SourceUnavailableError(source, "Request timeout")
    except httpx.HTTPStatusError as e:
        raise SourceUnavailableError(
            source, f"Unexpected status {e.response.status_code}"
        )
    except httpx.HTTPError as e:
        raise SourceUnavailableError(source, str(e) or type(e).__name__)
    except ValueError as e:
        raise SourceUnavailableError(source, f"Invalid JSON body: {e}")


async def fetch_countries(client: httpx.AsyncClient, url: str) -> List[Dict[str, Any]]:
    """Fetch country descriptors from REST Countries API"""
    data = await _get_json(client, url, COUNTRIES_SOURCE)
    if not isinstance(data, list):
        raise SourceUnavailableError(COUNTRIES_SOURCE, "Expected a JSON array")
    logger.info("Fetched %d countries", len(data))
    return data


async def fetch_exchange_rates(client: httpx.AsyncClient, url: str) -> Dict[str, float]:
    """Fetch USD-relative exchange rates from Exchange Rate API"""
    data = await _get_json(client, url, RATES_SOURCE)
    try:
        payload = RatesPayload.model_validate(data)
    except ValidationError as e:
        raise SourceUnavailableError(RATES_SOURCE, f"Malformed payload: {e}")
    rates = {code: rate for code, rate in payload.rates.items() if rate is not None}
    logger.info("Fetched %d exchange rates", len(rates))
    return rates
