import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.constants import KEV_ENRICHER_NAME, KEV_MEDIA_TYPE
from vulnfeed.core.exceptions import ConfigurationError, ParseError
from vulnfeed.core.metrics import enrichments_parsed_total, records_skipped_total, track_parse
from vulnfeed.schemas.enrichment import EnrichmentRecord, KEVEntry
from vulnfeed.services.enrichment.base import Enricher
from vulnfeed.services.fetcher import Compression, Fetcher, FetchResult
from vulnfeed.services.spool import Spool
from vulnfeed.services.updaters.base import validate_url

logger = logging.getLogger(__name__)


class KEVEnricher(Enricher):
    """
    Provider for the CISA Known Exploited Vulnerabilities (KEV) catalog.

    The catalog server sends an ETag but does not honor If-None-Match, so a
    200 carrying the previous Last-Modified also counts as unchanged.
    """

    name = KEV_ENRICHER_NAME
    media_type = KEV_MEDIA_TYPE

    def __init__(self, feed_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.feed_url = feed_url or settings.KEV_FEED_URL

    def configure(self, config: Optional[Dict[str, Any]], client: Optional[httpx.AsyncClient]) -> None:
        super().configure(config, client)
        url = (config or {}).get("url")
        if url:
            validate_url(url, self.name)
            if not url.endswith(".json"):
                raise ConfigurationError(f"{self.name}: invalid URL {url!r}, expected a .json file")
            self.feed_url = url

    async def fetch_enrichment(self, fingerprint: str = "") -> FetchResult:
        fetcher = Fetcher(
            self.feed_url,
            compression=Compression.NONE,
            name=self.name,
            compare_date=True,
        )
        return await fetcher.fetch(self._require_client(), fingerprint)

    def parse_enrichment(self, spool: Spool) -> List[EnrichmentRecord]:
        logger.info(f"{self.name}: starting parse")
        with track_parse(self.name):
            try:
                data = json.load(spool.file)
            except ValueError as e:
                raise ParseError(f"{self.name}: unable to decode catalog: {e}") from e
            finally:
                spool.close()
            records = self._records(data)
        enrichments_parsed_total.labels(enricher=self.name).inc(len(records))
        logger.info(f"{self.name}: parsed {len(records)} catalog entries")
        return records

    def _records(self, data: Any) -> List[EnrichmentRecord]:
        if not isinstance(data, dict) or not isinstance(data.get("vulnerabilities"), list):
            raise ParseError(f"{self.name}: catalog has no vulnerabilities array")
        catalog_version = str(data.get("catalogVersion") or "")

        records: List[EnrichmentRecord] = []
        for vuln in data["vulnerabilities"]:
            cve = (vuln.get("cveID") or "") if isinstance(vuln, dict) else ""
            if not cve:
                logger.debug(f"{self.name}: skipping entry without cveID")
                records_skipped_total.labels(reason="kev_missing_cve").inc()
                continue
            entry = KEVEntry(
                cve=cve,
                vulnerability_name=vuln.get("vulnerabilityName") or "",
                catalog_version=catalog_version,
                date_added=vuln.get("dateAdded") or "",
                short_description=vuln.get("shortDescription") or "",
                required_action=vuln.get("requiredAction") or "",
                due_date=vuln.get("dueDate") or "",
                known_ransomware_campaign_use=vuln.get("knownRansomwareCampaignUse") or "",
            )
            records.append(EnrichmentRecord(tags=[cve], enrichment=entry.model_dump()))
        return records
