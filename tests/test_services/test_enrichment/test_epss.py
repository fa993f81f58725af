"""Tests for the EPSS enricher."""

from datetime import datetime, timezone

import httpx
import pytest

from tests.mocks.feeds import EPSS_CSV, gzipped, mock_client, spooled
from vulnfeed.core.exceptions import ConfigurationError, ParseError
from vulnfeed.services.enrichment.epss import EPSSEnricher, default_feed_url, parse_metadata


class TestFeedUrl:
    def test_default_is_previous_day(self):
        now = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
        assert default_feed_url(now) == "https://epss.test/epss_scores-2025-02-28.csv.gz"

    def test_metadata_line(self):
        meta = parse_metadata("#model_version:v2023.03.01,score_date:2025-02-23T00:00:00+0000\n")
        assert meta == {"model_version": "v2023.03.01", "score_date": "2025-02-23T00:00:00+0000"}


class TestEPSSParse:
    def test_scores_and_bad_rows(self, caplog):
        records = EPSSEnricher().parse_enrichment(spooled(EPSS_CSV.encode()))

        assert [r.tags for r in records] == [["CVE-2021-44228"], ["CVE-2017-3066"]]
        first = records[0].enrichment
        assert first["modelVersion"] == "v2023.03.01"
        assert first["date"] == "2025-02-23T00:00:00+0000"
        assert first["epss"] == pytest.approx(0.94358)
        assert first["percentile"] == pytest.approx(0.99957)
        assert "CVE-1999-0001" in caplog.text

    def test_missing_metadata(self):
        body = "cve,epss,percentile\nCVE-2021-44228,0.9,0.9\n"
        with pytest.raises(ParseError):
            EPSSEnricher().parse_enrichment(spooled(body.encode()))

    def test_incomplete_metadata(self):
        body = "#model_version:v2023.03.01\ncve,epss,percentile\n"
        with pytest.raises(ParseError):
            EPSSEnricher().parse_enrichment(spooled(body.encode()))

    def test_unexpected_header(self):
        body = "#model_version:v1,score_date:2025-01-01\ncve,score\n"
        with pytest.raises(ParseError):
            EPSSEnricher().parse_enrichment(spooled(body.encode()))


class TestEPSSFetch:
    @pytest.mark.asyncio
    async def test_gzip_body_is_decompressed(self):
        url = "https://epss.test/epss_scores-2025-02-23.csv.gz"

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == url
            return httpx.Response(200, content=gzipped(EPSS_CSV.encode()), headers={"ETag": '"e1"'})

        enricher = EPSSEnricher(feed_url=url)
        async with mock_client(handler) as client:
            enricher.configure(None, client)
            result = await enricher.fetch_enrichment()

        records = enricher.parse_enrichment(result.spool)
        assert len(records) == 2


class TestEPSSConfigure:
    def test_requires_gzip_url(self):
        with pytest.raises(ConfigurationError):
            EPSSEnricher().configure({"url": "https://epss.test/scores.csv"}, None)

    def test_rejects_relative_url(self):
        with pytest.raises(ConfigurationError):
            EPSSEnricher().configure({"url": "scores.csv.gz"}, None)

    def test_url_override(self):
        enricher = EPSSEnricher()
        enricher.configure({"url": "https://mirror.test/scores.csv.gz"}, None)
        assert enricher.feed_url == "https://mirror.test/scores.csv.gz"
