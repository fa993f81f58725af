"""
Store contracts.

The persistent datastore is an external collaborator; these abstract
classes describe what the updaters, enrichers and matchers need from it.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.enrichment import EnrichmentRecord


class EnrichmentGetter(ABC):
    """Read side used by enrichers at query time."""

    @abstractmethod
    async def get_enrichment(self, tags: List[str]) -> List[EnrichmentRecord]:
        """Return records whose tags intersect ``tags``."""


class UpdaterStore(ABC):
    """Write side used by the update manager."""

    @abstractmethod
    async def get_fingerprint(self, updater: str) -> str:
        """Fingerprint of the latest operation for ``updater``, or empty."""

    @abstractmethod
    async def update_vulnerabilities(
        self, updater: str, fingerprint: str, vulnerabilities: List[Vulnerability]
    ) -> str:
        """Store a batch atomically; returns the operation reference."""

    @abstractmethod
    async def update_enrichments(
        self, enricher: str, fingerprint: str, records: List[EnrichmentRecord]
    ) -> str:
        """Store an enrichment batch atomically; returns the operation reference."""

    @abstractmethod
    async def get_vulnerabilities(
        self, did: str, version_id: Optional[str] = None, package: Optional[str] = None
    ) -> List[Vulnerability]:
        """Candidate vulnerabilities for a distribution, optionally one package name."""
