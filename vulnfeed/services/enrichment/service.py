import asyncio
import json
import logging
from typing import Callable, Dict, List, Optional

from vulnfeed.models.report import VulnerabilityReport
from vulnfeed.repositories.base import EnrichmentGetter
from vulnfeed.services.enrichment.base import Enricher
from vulnfeed.services.enrichment.epss import EPSSEnricher
from vulnfeed.services.enrichment.kev import KEVEnricher

logger = logging.getLogger(__name__)

GetterFactory = Callable[[str], EnrichmentGetter]


class VulnerabilityEnrichmentService:
    """
    Attach stored enrichment data to vulnerability reports.

    Every enricher runs its correlation pass concurrently against its own
    getter; results land in ``report.enrichments`` keyed by media type.
    """

    def __init__(self, enrichers: Optional[List[Enricher]] = None):
        self.enrichers: List[Enricher] = (
            enrichers if enrichers is not None else [EPSSEnricher(), KEVEnricher()]
        )

    async def enrich_report(
        self, report: VulnerabilityReport, getter_for: GetterFactory
    ) -> Dict[str, List[str]]:
        """
        Run every enricher over ``report``.

        Args:
            report: The matcher output to annotate in place
            getter_for: Returns the store getter for an enricher name

        Returns:
            The enrichments added, by media type
        """
        if not report.vulnerabilities:
            return {}

        results = await asyncio.gather(
            *(e.enrich(getter_for(e.name), report) for e in self.enrichers),
            return_exceptions=True,
        )

        added: Dict[str, List[str]] = {}
        for enricher, result in zip(self.enrichers, results):
            if isinstance(result, Exception):
                logger.error(f"Enricher {enricher.name} failed: {result}")
                continue
            media_type, documents = result
            if documents is None:
                continue
            added[media_type] = documents
        report.enrichments.update(added)
        return added

    @staticmethod
    def payloads(report: VulnerabilityReport, media_type: str) -> Dict[str, list]:
        """Decode the enrichment documents of one media type into a single mapping."""
        merged: Dict[str, list] = {}
        for document in report.enrichments.get(media_type, []):
            for vuln_id, items in json.loads(document).items():
                merged.setdefault(vuln_id, []).extend(items)
        return merged
