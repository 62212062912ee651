"""
Refresh pipeline: fetch both sources, reconcile, commit, stamp, rebuild cache.

One call to RefreshService.refresh() is one refresh cycle. Only fetching can
fail softly (SourceUnavailableError); it leaves the stored snapshot and the
last refresh timestamp exactly as they were. The summary image is rebuilt in
a background task after the stamp, and its outcome is only logged.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Set

import httpx
from fastapi.concurrency import run_in_threadpool

from country_cache.core import sources
from country_cache.core.image_generator import generate_summary_image
from country_cache.core.reconcile import random_multiplier, reconcile
from country_cache.core.repository import CountryRepository
from country_cache.exceptions import SourceUnavailableError
from country_cache.schemas import RefreshResult

logger = logging.getLogger(__name__)

SUMMARY_TOP_N = 5


class RefreshState(str, Enum):
    FETCHING = "FETCHING"
    RECONCILING = "RECONCILING"
    COMMITTING = "COMMITTING"
    STAMPING = "STAMPING"
    CACHE_REBUILD = "CACHE_REBUILD"
    DONE = "DONE"
    FAILED = "FAILED"


class RefreshService:
    def __init__(
        self,
        repository: CountryRepository,
        client: httpx.AsyncClient,
        config,
        renderer=generate_summary_image,
        multiplier: Callable[[], float] = random_multiplier,
    ):
        self.repository = repository
        self.client = client
        self.config = config
        self.renderer = renderer
        self.multiplier = multiplier
        self.state: Optional[RefreshState] = None
        self._lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    def _enter(self, state: RefreshState) -> None:
        self.state = state
        logger.info("Refresh state -> %s", state.value)

    async def refresh(self) -> RefreshResult:
        # One cycle at a time; a second trigger waits for the first to finish
        async with self._lock:
            return await self._run()

    async def _run(self) -> RefreshResult:
        as_of = datetime.now(timezone.utc)

        self._enter(RefreshState.FETCHING)
        try:
            countries, rates = await asyncio.gather(
                sources.fetch_countries(self.client, self.config.countries_api_url),
                sources.fetch_exchange_rates(
                    self.client, self.config.exchange_rate_api_url
                ),
            )
        except SourceUnavailableError as e:
            self._enter(RefreshState.FAILED)
            logger.warning("Refresh aborted: %s", e)
            raise

        self._enter(RefreshState.RECONCILING)
        records = reconcile(countries, rates, as_of, self.multiplier)

        self._enter(RefreshState.COMMITTING)
        processed = await run_in_threadpool(self.repository.upsert_all, records, as_of)

        self._enter(RefreshState.STAMPING)
        await run_in_threadpool(self.repository.set_last_refreshed_at, as_of)

        self._enter(RefreshState.CACHE_REBUILD)
        self._schedule_cache_rebuild()

        self._enter(RefreshState.DONE)
        return RefreshResult(records_processed=processed, last_refreshed_at=as_of)

    def _schedule_cache_rebuild(self) -> None:
        task = asyncio.get_running_loop().create_task(self.rebuild_cache())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def rebuild_cache(self) -> bool:
        """Regenerate the summary image. Failures are logged, never raised."""
        try:
            snapshot = await run_in_threadpool(self.repository.snapshot, SUMMARY_TOP_N)
            await run_in_threadpool(
                self.renderer, snapshot, self.config.summary_image_path()
            )
        except Exception:
            logger.exception("Error generating summary image")
            return False
        return True

    async def drain(self) -> None:
        """Wait for scheduled cache rebuilds to finish."""
        if self._background:
            await asyncio.gather(*list(self._background))
