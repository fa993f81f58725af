from typing import Dict, List

from vulnfeed.models.report import VulnerabilityReport
from vulnfeed.services.enrichment.base import Enricher, extract_cves
from vulnfeed.services.enrichment.epss import EPSSEnricher
from vulnfeed.services.enrichment.kev import KEVEnricher
from vulnfeed.services.enrichment.service import GetterFactory, VulnerabilityEnrichmentService

# Singleton instance
vulnerability_enrichment_service = VulnerabilityEnrichmentService()


async def enrich_report(report: VulnerabilityReport, getter_for: GetterFactory) -> Dict[str, List[str]]:
    """Convenience function to enrich a report with the default enrichers."""
    return await vulnerability_enrichment_service.enrich_report(report, getter_for)


__all__ = [
    "Enricher",
    "EPSSEnricher",
    "KEVEnricher",
    "VulnerabilityEnrichmentService",
    "enrich_report",
    "extract_cves",
    "vulnerability_enrichment_service",
]
