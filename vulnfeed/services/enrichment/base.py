"""
Enricher framework.

Enrichers follow the updater fetch/parse lifecycle but produce
EnrichmentRecords keyed by CVE. At query time ``enrich`` correlates a
vulnerability report with the stored records.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx

from vulnfeed.core.constants import CVE_PATTERN
from vulnfeed.core.exceptions import FetchError
from vulnfeed.models.report import VulnerabilityReport
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.repositories.base import EnrichmentGetter
from vulnfeed.schemas.enrichment import EnrichmentRecord
from vulnfeed.services.fetcher import FetchResult
from vulnfeed.services.spool import Spool

logger = logging.getLogger(__name__)


def extract_cves(vuln: Vulnerability) -> Set[str]:
    """CVE identifiers mentioned in a vulnerability's free-text fields, normalized."""
    found: Set[str] = set()
    for text in vuln.cve_candidates():
        for match in CVE_PATTERN.findall(text or ""):
            found.add(match.upper().replace("_", "-"))
    return found


class Enricher(ABC):
    name: str
    media_type: str

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client

    def configure(self, config: Optional[Dict[str, Any]], client: Optional[httpx.AsyncClient]) -> None:
        self.client = client

    def _require_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise FetchError(f"{self.name}: not configured with an HTTP client")
        return self.client

    @abstractmethod
    async def fetch_enrichment(self, fingerprint: str = "") -> FetchResult:
        """Fetch the feed, raising Unchanged when nothing is new."""

    @abstractmethod
    def parse_enrichment(self, spool: Spool) -> List[EnrichmentRecord]:
        """Parse a fetched spool into enrichment records."""

    async def enrich(
        self, getter: EnrichmentGetter, report: VulnerabilityReport
    ) -> Tuple[str, Optional[List[str]]]:
        """
        Correlate ``report`` with stored enrichments.

        Returns:
            The media type and a single JSON document mapping vulnerability
            id to the list of matching payloads, or None when nothing matched
        """
        found: Dict[str, List[Any]] = {}
        memo: Dict[str, List[EnrichmentRecord]] = {}

        for vuln_id, vuln in report.vulnerabilities.items():
            tags = sorted(extract_cves(vuln))
            if not tags:
                continue
            key = "_".join(tags)
            records = memo.get(key)
            if records is None:
                records = await getter.get_enrichment(tags)
                memo[key] = records
            for record in records:
                found.setdefault(vuln_id, []).append(record.enrichment)

        if not found:
            return self.media_type, None
        logger.debug(f"{self.name}: enriched {len(found)} vulnerabilities")
        return self.media_type, [json.dumps(found)]
