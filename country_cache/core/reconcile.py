"""Merge a countries payload with a rates payload into country records."""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from country_cache.schemas import CountryDescriptor, CountryRecord

logger = logging.getLogger(__name__)

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000


def canonical_name(name: str) -> str:
    """Capitalize each word: "united  KINGDOM" -> "United Kingdom"."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def random_multiplier() -> float:
    """Stand-in for GDP per capita, uniform on [1000, 2000)."""
    return MULTIPLIER_MIN + random.random() * (MULTIPLIER_MAX - MULTIPLIER_MIN)


def derive_economics(
    population: int,
    currency_code: Optional[str],
    rates: Dict[str, float],
    multiplier: Callable[[], float] = random_multiplier,
) -> Tuple[Optional[float], Optional[float]]:
    """Return (exchange_rate, estimated_gdp) for one country."""
    if not currency_code:
        return None, 0.0

    exchange_rate = rates.get(currency_code)
    if exchange_rate is None or exchange_rate <= 0:
        # Unknown for now, not zero
        return None, None

    return exchange_rate, population * multiplier() / exchange_rate


def build_record(
    descriptor: CountryDescriptor,
    rates: Dict[str, float],
    as_of: datetime,
    multiplier: Callable[[], float] = random_multiplier,
) -> Optional[CountryRecord]:
    name = (descriptor.name or "").strip()
    if not name or not descriptor.population or descriptor.population <= 0:
        return None

    currency_code = None
    if descriptor.currencies:
        currency_code = descriptor.currencies[0].code or None

    exchange_rate, estimated_gdp = derive_economics(
        descriptor.population, currency_code, rates, multiplier
    )

    return CountryRecord(
        name=canonical_name(name),
        source_name=descriptor.name,
        capital=descriptor.capital or None,
        region=descriptor.region or None,
        population=descriptor.population,
        currency_code=currency_code,
        exchange_rate=exchange_rate,
        estimated_gdp=estimated_gdp,
        flag_url=descriptor.flag or None,
        last_refreshed_at=as_of,
    )


def reconcile(
    descriptors: Iterable[Any],
    rates: Dict[str, float],
    as_of: datetime,
    multiplier: Callable[[], float] = random_multiplier,
) -> List[CountryRecord]:
    """
    Build one record per eligible descriptor.

    Descriptors without a name or a positive population are skipped, as are
    entries that do not parse at all. When two descriptors share a canonical
    name the later one wins.
    """
    records: Dict[str, CountryRecord] = {}
    skipped = 0

    for raw in descriptors:
        try:
            descriptor = CountryDescriptor.model_validate(raw)
        except ValidationError as e:
            logger.debug("Skipping malformed country descriptor: %s", e)
            skipped += 1
            continue

        record = build_record(descriptor, rates, as_of, multiplier)
        if record is None:
            logger.debug("Skipping country %r: no name or population", descriptor.name)
            skipped += 1
            continue
        records[record.name] = record

    logger.info("Reconciled %d countries, skipped %d", len(records), skipped)
    return list(records.values())
