"""Tests for Oracle ELSA updaters and yearly feed discovery."""

import httpx
import pytest

from tests.mocks.feeds import ORACLE_INDEX_HTML, ORACLE_OVAL, bzipped, mock_client
from vulnfeed.core.exceptions import ConfigurationError, FetchError
from vulnfeed.models.vulnerability import Severity
from vulnfeed.schemas.oval import Advisory, Definition
from vulnfeed.services.fetcher import Compression
from vulnfeed.services.indexer.oracle import oracle_linux
from vulnfeed.services.updaters.oracle import OracleFactory, OracleUpdater, keep_definition

BASE = "https://oracle.test/security/oval/"


def _index(body: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body)

    return handler


class TestOracleFactory:
    @pytest.mark.asyncio
    async def test_discovers_years_inside_window(self):
        factory = OracleFactory(window=9, current_year=2025)
        async with mock_client(_index(ORACLE_INDEX_HTML)) as client:
            factory.configure({"url": BASE}, client)
            updaters = await factory.updater_set()

        by_name = {u.name: u for u in updaters}
        assert set(by_name) == {"oracle-2025-updater", "oracle-2020-updater"}
        for year in (2025, 2020):
            updater = by_name[f"oracle-{year}-updater"]
            assert updater.compression is Compression.BZIP2
            assert updater.url == f"{BASE}com.oracle.elsa-{year}.xml.bz2"

    @pytest.mark.asyncio
    async def test_zero_window_keeps_everything(self):
        factory = OracleFactory(base_url=BASE, window=0, current_year=2025)
        async with mock_client(_index(ORACLE_INDEX_HTML)) as client:
            factory.configure(None, client)
            updaters = await factory.updater_set()

        assert len(updaters) == 3

    @pytest.mark.asyncio
    async def test_single_file(self):
        factory = OracleFactory(base_url=BASE, window=9, current_year=2025)
        body = '<a href="com.oracle.elsa-2024.xml.bz2">2024</a>'
        async with mock_client(_index(body)) as client:
            factory.configure(None, client)
            updaters = await factory.updater_set()

        assert updaters.names() == ["oracle-2024-updater"]

    @pytest.mark.asyncio
    async def test_no_matches_raises(self):
        factory = OracleFactory(base_url=BASE, current_year=2025)
        async with mock_client(_index("<html>nothing here</html>")) as client:
            factory.configure(None, client)
            with pytest.raises(FetchError):
                await factory.updater_set()

    @pytest.mark.asyncio
    async def test_index_error_status_raises(self):
        factory = OracleFactory(base_url=BASE)
        async with mock_client(lambda r: httpx.Response(500)) as client:
            factory.configure(None, client)
            with pytest.raises(FetchError):
                await factory.updater_set()

    @pytest.mark.asyncio
    async def test_without_client_returns_empty_set(self):
        factory = OracleFactory(base_url=BASE)
        factory.configure(None, None)
        assert len(await factory.updater_set()) == 0

    def test_configured_url_gets_trailing_slash(self):
        factory = OracleFactory()
        factory.configure({"url": "https://mirror.test/oval", "years": 3}, None)
        assert factory.base_url == "https://mirror.test/oval/"
        assert factory.window == 3

    def test_non_numeric_years_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            OracleFactory().configure({"years": "ten"}, None)

    @pytest.mark.asyncio
    async def test_configured_compression_reaches_updaters(self):
        factory = OracleFactory(base_url=BASE, window=0, current_year=2025)
        async with mock_client(_index(ORACLE_INDEX_HTML)) as client:
            factory.configure({"compression": "gzip"}, client)
            updaters = await factory.updater_set()

        assert {u.compression for u in updaters} == {Compression.GZIP}

    def test_unknown_compression_is_rejected(self):
        with pytest.raises(ConfigurationError):
            OracleFactory().configure({"compression": "lzma"}, None)


class TestKeepDefinition:
    def _definition(self, *cpes):
        return Definition(id="oval:test:def:1", advisory=Advisory(affected_cpes=list(cpes)))

    def test_ksplice_only_is_dropped(self):
        assert keep_definition(self._definition("cpe:/o:oracle:linux:8:1:userspace_ksplice")) is False

    def test_mixed_is_kept_with_warning(self, caplog):
        definition = self._definition("cpe:/o:oracle:linux:8:1:userspace_ksplice", "cpe:/a:oracle:linux:8::appstream")
        assert keep_definition(definition) is True
        assert "ksplice" in caplog.text

    def test_no_cpes_is_kept(self):
        assert keep_definition(self._definition()) is True


class TestOracleUpdater:
    def test_name_embeds_year(self):
        assert OracleUpdater(2025).name == "oracle-2025-updater"

    @pytest.mark.asyncio
    async def test_fetch_and_parse(self):
        updater = OracleUpdater(2023, url=f"{BASE}com.oracle.elsa-2023.xml.bz2")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=bzipped(ORACLE_OVAL), headers={"ETag": '"elsa-2023"'})

        async with mock_client(handler) as client:
            updater.configure(None, client)
            result = await updater.fetch()

        vulns = updater.parse(result.spool)

        assert result.spool.closed
        assert {v.package.name for v in vulns} == {"nodejs", "nodejs-docs"}
        nodejs = next(v for v in vulns if v.package.name == "nodejs")
        assert nodejs.name == "ELSA-2023-5362"
        assert nodejs.dist == oracle_linux("8")
        assert nodejs.package.module == "nodejs:18"
        assert nodejs.severity == "MODERATE"
        assert nodejs.normalized_severity is Severity.MEDIUM
        assert nodejs.updater == "oracle-2023-updater"
        assert "ELSA-2023-5362.html" in nodejs.links
