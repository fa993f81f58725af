"""
In-memory store.

Keeps the latest update operation per updater or enricher. Storing a new
batch supersedes the previous one for the same name, which mirrors the
garbage collection a persistent store performs.
"""

import asyncio
import itertools
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.repositories.base import EnrichmentGetter, UpdaterStore
from vulnfeed.schemas.enrichment import EnrichmentRecord

logger = logging.getLogger(__name__)


class UpdateOperation(BaseModel):
    ref: str = Field(default_factory=lambda: str(uuid.uuid4()))
    updater: str
    fingerprint: str = ""
    kind: str = "vulnerability"
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MemoryStore(UpdaterStore):
    def __init__(self):
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)
        self.operations: Dict[str, UpdateOperation] = {}
        self._vulnerabilities: Dict[str, List[Vulnerability]] = {}
        self._enrichments: Dict[str, List[EnrichmentRecord]] = {}

    async def get_fingerprint(self, updater: str) -> str:
        op = self.operations.get(updater)
        return op.fingerprint if op else ""

    def latest(self, updater: str) -> Optional[UpdateOperation]:
        return self.operations.get(updater)

    async def update_vulnerabilities(
        self, updater: str, fingerprint: str, vulnerabilities: List[Vulnerability]
    ) -> str:
        async with self._lock:
            op = UpdateOperation(updater=updater, fingerprint=fingerprint)
            self._vulnerabilities[updater] = [
                v if v.id else v.model_copy(update={"id": str(next(self._ids))})
                for v in vulnerabilities
            ]
            self.operations[updater] = op
        logger.info(f"stored {len(vulnerabilities)} vulnerabilities for {updater} (ref {op.ref})")
        return op.ref

    async def update_enrichments(
        self, enricher: str, fingerprint: str, records: List[EnrichmentRecord]
    ) -> str:
        async with self._lock:
            op = UpdateOperation(updater=enricher, fingerprint=fingerprint, kind="enrichment")
            self._enrichments[enricher] = list(records)
            self.operations[enricher] = op
        logger.info(f"stored {len(records)} enrichments for {enricher} (ref {op.ref})")
        return op.ref

    async def get_vulnerabilities(
        self, did: str, version_id: Optional[str] = None, package: Optional[str] = None
    ) -> List[Vulnerability]:
        out: List[Vulnerability] = []
        for vulns in self._vulnerabilities.values():
            for v in vulns:
                if v.dist.did != did:
                    continue
                if version_id is not None and v.dist.version_id != version_id:
                    continue
                if package is not None and (v.package is None or v.package.name != package):
                    continue
                out.append(v)
        return out

    def getter(self, enricher: str) -> "MemoryEnrichmentGetter":
        return MemoryEnrichmentGetter(self, enricher)

    def enrichments(self, enricher: str) -> List[EnrichmentRecord]:
        return self._enrichments.get(enricher, [])


class MemoryEnrichmentGetter(EnrichmentGetter):
    """Enrichment lookups scoped to one enricher's latest batch."""

    def __init__(self, store: MemoryStore, enricher: str):
        self.store = store
        self.enricher = enricher

    async def get_enrichment(self, tags: List[str]) -> List[EnrichmentRecord]:
        wanted = set(tags)
        return [r for r in self.store.enrichments(self.enricher) if wanted.intersection(r.tags)]
