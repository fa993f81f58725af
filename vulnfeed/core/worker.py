import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel

from vulnfeed.core.config import settings
from vulnfeed.core.exceptions import Unchanged, VulnFeedError
from vulnfeed.core.metrics import (
    updater_run_duration_seconds,
    updater_runs_total,
    worker_active_count,
    worker_queue_size,
)
from vulnfeed.repositories.base import UpdaterStore
from vulnfeed.services.enrichment.base import Enricher
from vulnfeed.services.fetcher import FetchResult
from vulnfeed.services.updaters.base import Updater, UpdaterSet, UpdaterSetFactory

logger = logging.getLogger(__name__)

Job = Union[Updater, Enricher]


class UpdateResult(BaseModel):
    name: str
    kind: str
    status: str
    ref: str = ""
    count: int = 0
    error: str = ""


class UpdateManager:
    """
    Run every configured updater and enricher once.

    Factories are asked for their current updaters, each updater is
    configured, and jobs are fed through an asyncio.Queue to a fixed pool
    of workers. A job fetches conditionally, parses in a thread and stores
    the batch with its new fingerprint.

    Args:
        store: Where fingerprints are read and results written
        client: Shared HTTP client handed to every factory, updater and enricher
        factories: Updater set factories to enumerate
        enrichers: Enrichers to run alongside the updaters
        configs: Per-name configuration dicts for factories, updaters and enrichers
        num_workers: Worker pool size, defaults to settings
    """

    def __init__(
        self,
        store: UpdaterStore,
        client: httpx.AsyncClient,
        factories: Optional[List[UpdaterSetFactory]] = None,
        enrichers: Optional[List[Enricher]] = None,
        configs: Optional[Dict[str, Dict[str, Any]]] = None,
        num_workers: Optional[int] = None,
    ):
        self.store = store
        self.client = client
        self.factories = factories or []
        self.enrichers = enrichers or []
        self.configs = configs or {}
        self.num_workers = num_workers or settings.WORKER_COUNT
        self.queue: "asyncio.Queue[Job]" = asyncio.Queue()
        self.workers: List[asyncio.Task] = []
        self.results: List[UpdateResult] = []

    async def updaters(self) -> UpdaterSet:
        """Enumerate and configure updaters; failing factories and updaters are dropped."""
        merged = UpdaterSet()
        for factory in self.factories:
            try:
                factory.configure(self.configs.get(factory.name), self.client)
                found = await factory.updater_set()
            except VulnFeedError as e:
                logger.error(f"Factory {factory.name} failed: {e}")
                continue

            for updater in found:
                try:
                    updater.configure(self.configs.get(updater.name), self.client)
                except VulnFeedError as e:
                    logger.warning(f"Dropping updater {updater.name}: {e}")
                    continue
                if updater.name in merged:
                    logger.warning(f"Updater {updater.name} offered twice, keeping the first")
                    continue
                merged.add(updater)
        return merged

    def configured_enrichers(self) -> List[Enricher]:
        out: List[Enricher] = []
        for enricher in self.enrichers:
            try:
                enricher.configure(self.configs.get(enricher.name), self.client)
            except VulnFeedError as e:
                logger.warning(f"Dropping enricher {enricher.name}: {e}")
                continue
            out.append(enricher)
        return out

    async def run(self) -> List[UpdateResult]:
        """Run one update cycle and return a result per job."""
        self.results = []
        jobs: List[Job] = list(await self.updaters()) + self.configured_enrichers()
        if not jobs:
            logger.info("No updaters or enrichers configured")
            return []

        logger.info(f"Starting {self.num_workers} update workers for {len(jobs)} jobs...")
        for job in jobs:
            self.queue.put_nowait(job)
        worker_queue_size.set(self.queue.qsize())

        for i in range(min(self.num_workers, len(jobs))):
            self.workers.append(asyncio.create_task(self.worker(f"worker-{i}")))
        try:
            await self.queue.join()
        finally:
            await self.stop()
        return self.results

    async def stop(self) -> None:
        """Cancel the worker tasks and wait for them to finish."""
        for task in self.workers:
            task.cancel()
        await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers = []

    async def worker(self, name: str) -> None:
        """Worker loop that processes jobs from the queue."""
        logger.debug(f"Worker {name} started")
        while True:
            try:
                job = await self.queue.get()
            except asyncio.CancelledError:
                logger.debug(f"Worker {name} stopped")
                break

            worker_queue_size.set(self.queue.qsize())
            worker_active_count.inc()
            start_time = time.time()
            try:
                result = await self.run_job(job)
            except asyncio.CancelledError:
                logger.info(f"Worker {name} cancelled during {job.name}")
                raise
            except Exception as e:
                logger.exception(f"Worker {name} crashed on {job.name}: {e}")
                result = UpdateResult(name=job.name, kind="unknown", status="failed", error=str(e))
            finally:
                worker_active_count.dec()
                updater_run_duration_seconds.observe(time.time() - start_time)
                self.queue.task_done()

            updater_runs_total.labels(status=result.status).inc()
            self.results.append(result)
            logger.info(f"Worker {name} finished {job.name}: {result.status}")

    async def run_job(self, job: Job) -> UpdateResult:
        kind = "enrichment" if isinstance(job, Enricher) else "vulnerability"
        try:
            fingerprint = await self.store.get_fingerprint(job.name)
            try:
                if isinstance(job, Enricher):
                    fetched = await job.fetch_enrichment(fingerprint)
                else:
                    fetched = await job.fetch(fingerprint)
            except Unchanged:
                return UpdateResult(name=job.name, kind=kind, status="unchanged")

            records = await self._parse(job, fetched)
            if isinstance(job, Enricher):
                ref = await self.store.update_enrichments(job.name, fetched.fingerprint, records)
            else:
                ref = await self.store.update_vulnerabilities(job.name, fetched.fingerprint, records)
        except VulnFeedError as e:
            logger.error(f"Error updating {job.name}: {e}")
            return UpdateResult(name=job.name, kind=kind, status="failed", error=str(e))

        return UpdateResult(name=job.name, kind=kind, status="updated", ref=ref, count=len(records))

    async def _parse(self, job: Job, fetched: FetchResult) -> list:
        parse = job.parse_enrichment if isinstance(job, Enricher) else job.parse
        try:
            return await asyncio.to_thread(parse, fetched.spool)
        except asyncio.CancelledError:
            fetched.spool.close()
            raise
