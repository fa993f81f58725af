import csv
import io
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.constants import EPSS_ENRICHER_NAME, EPSS_HEADER, EPSS_MEDIA_TYPE
from vulnfeed.core.exceptions import ConfigurationError, ParseError
from vulnfeed.core.metrics import enrichments_parsed_total, records_skipped_total, track_parse
from vulnfeed.schemas.enrichment import EnrichmentRecord, EPSSItem
from vulnfeed.services.enrichment.base import Enricher
from vulnfeed.services.fetcher import Compression, Fetcher, FetchResult
from vulnfeed.services.spool import Spool
from vulnfeed.services.updaters.base import validate_url

logger = logging.getLogger(__name__)


def default_feed_url(today: Optional[datetime] = None) -> str:
    """The published scores for the day before ``today`` (UTC)."""
    today = today or datetime.now(timezone.utc)
    day = (today - timedelta(days=1)).strftime("%Y-%m-%d")
    return f"{settings.EPSS_BASE_URL}epss_scores-{day}.csv.gz"


def parse_metadata(line: str) -> Dict[str, str]:
    """Parse ``#model_version:v2023.03.01,score_date:2024-01-01T00:00:00+0000``."""
    meta: Dict[str, str] = {}
    for part in line.lstrip("#").strip().split(","):
        key, sep, value = part.partition(":")
        if sep:
            meta[key.strip()] = value.strip()
    return meta


class EPSSEnricher(Enricher):
    """Provider for Exploit Prediction Scoring System (EPSS) scores."""

    name = EPSS_ENRICHER_NAME
    media_type = EPSS_MEDIA_TYPE

    def __init__(self, feed_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.feed_url = feed_url or default_feed_url()

    def configure(self, config: Optional[Dict[str, Any]], client: Optional[httpx.AsyncClient]) -> None:
        super().configure(config, client)
        url = (config or {}).get("url")
        if url:
            validate_url(url, self.name)
            if not url.endswith(".gz"):
                raise ConfigurationError(f"{self.name}: invalid URL {url!r}, expected a .gz file")
            self.feed_url = url

    async def fetch_enrichment(self, fingerprint: str = "") -> FetchResult:
        fetcher = Fetcher(self.feed_url, compression=Compression.GZIP, name=self.name)
        return await fetcher.fetch(self._require_client(), fingerprint)

    def parse_enrichment(self, spool: Spool) -> List[EnrichmentRecord]:
        logger.info(f"{self.name}: starting parse")
        with track_parse(self.name):
            try:
                records = self._parse(io.TextIOWrapper(spool.file, encoding="utf-8", newline=""))
            finally:
                spool.close()
        enrichments_parsed_total.labels(enricher=self.name).inc(len(records))
        logger.info(f"{self.name}: parsed {len(records)} scores")
        return records

    def _parse(self, text: io.TextIOBase) -> List[EnrichmentRecord]:
        first = text.readline()
        if not first.startswith("#"):
            raise ParseError(f"{self.name}: missing metadata line")
        meta = parse_metadata(first)
        model_version = meta.get("model_version", "")
        score_date = meta.get("score_date", "")
        if not model_version or not score_date:
            raise ParseError(f"{self.name}: metadata line lacks model_version or score_date: {first.strip()!r}")

        reader = csv.reader(text)
        header = next(reader, None)
        if header is None or [h.strip() for h in header] != EPSS_HEADER:
            raise ParseError(f"{self.name}: unexpected CSV header {header!r}")

        records: List[EnrichmentRecord] = []
        for row in reader:
            if not row:
                continue
            if len(row) != len(EPSS_HEADER):
                logger.warning(f"{self.name}: skipping malformed row {row!r}")
                records_skipped_total.labels(reason="epss_malformed_row").inc()
                continue
            cve = row[0].strip()
            try:
                epss = float(row[1])
                percentile = float(row[2])
            except ValueError:
                logger.warning(f"{self.name}: skipping row with invalid score {row!r}")
                records_skipped_total.labels(reason="epss_invalid_float").inc()
                continue
            item = EPSSItem(
                model_version=model_version,
                date=score_date,
                cve=cve,
                epss=epss,
                percentile=percentile,
            )
            records.append(EnrichmentRecord(tags=[cve], enrichment=item.model_dump(by_alias=True)))
        return records
