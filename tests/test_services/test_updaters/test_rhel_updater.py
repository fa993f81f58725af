"""Tests for RHEL OVAL v2 updaters."""

import httpx
import pytest

from tests.mocks.feeds import mock_client
from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.core.exceptions import FetchError
from vulnfeed.schemas.oval import Advisory, Definition
from vulnfeed.services.indexer.rhel import rhel_release
from vulnfeed.services.updaters.rhel import RHELFactory, RHELUpdater

MANIFEST_URL = "https://rhel.test/oval/v2/PULP_MANIFEST"
MANIFEST = """RHEL5/rhel-5.oval.xml.bz2,aaaa,100
RHEL8/rhel-8.oval.xml.bz2,bbbb,200
RHEL8/rhel-8-including-unpatched.oval.xml.bz2,cccc,300
RHEL9/rhel-9-including-unpatched.oval.xml.bz2,dddd,400
RHEL9/rhel-9.oval.xml.bz2,eeee,500
RHEL9/ansible-automation-platform-2.oval.xml.bz2,ffff,600
"""


def _manifest(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text=MANIFEST)


class TestRHELFactory:
    @pytest.mark.asyncio
    async def test_unpatched_files_by_default(self):
        factory = RHELFactory(MANIFEST_URL)
        async with mock_client(_manifest) as client:
            factory.configure(None, client)
            updaters = await factory.updater_set()

        assert updaters.names() == ["RHEL8-rhel-8-including-unpatched", "RHEL9-rhel-9-including-unpatched"]
        first = updaters.updaters()[0]
        assert first.url == "https://rhel.test/oval/v2/RHEL8/rhel-8-including-unpatched.oval.xml.bz2"

    @pytest.mark.asyncio
    async def test_ignore_unpatched_selects_patched_files(self):
        factory = RHELFactory(MANIFEST_URL)
        async with mock_client(_manifest) as client:
            factory.configure({"ignore_unpatched": True}, client)
            updaters = await factory.updater_set()

        assert updaters.names() == ["RHEL8-rhel-8", "RHEL9-rhel-9"]
        assert all(u.ignore_unpatched for u in updaters)

    @pytest.mark.asyncio
    async def test_empty_manifest_raises(self):
        factory = RHELFactory(MANIFEST_URL)
        async with mock_client(lambda r: httpx.Response(200, text="")) as client:
            factory.configure(None, client)
            with pytest.raises(FetchError):
                await factory.updater_set()


class TestRHELUpdater:
    def _definition(self, kind: str, *cpes: str) -> Definition:
        return Definition(
            id=f"oval:com.redhat.{kind}:def:20231234",
            title="RHSA-2023:1234: openssl security update (Important)",
            advisory=Advisory(severity="Important", affected_cpes=list(cpes)),
        )

    def test_one_prototype_per_valid_cpe(self):
        updater = RHELUpdater(8, url="https://rhel.test/rhel-8.oval.xml.bz2")
        protos = updater.proto(
            self._definition("rhsa", "cpe:/o:redhat:enterprise_linux:8::baseos", "not a cpe", "")
        )

        assert len(protos) == 1
        assert protos[0].repo.key == RHEL_REPOSITORY_KEY
        assert protos[0].repo.cpe == "cpe:/o:redhat:enterprise_linux:8::baseos"
        assert protos[0].dist == rhel_release("8")

    def test_unaffected_definitions_are_skipped(self):
        updater = RHELUpdater(8, url="https://rhel.test/rhel-8.oval.xml.bz2")
        assert updater.proto(self._definition("unaffected", "cpe:/o:redhat:enterprise_linux:8")) == []

    def test_cve_definitions_skipped_when_ignoring_unpatched(self):
        updater = RHELUpdater(8, url="https://rhel.test/rhel-8.oval.xml.bz2", ignore_unpatched=True)
        assert updater.proto(self._definition("cve", "cpe:/o:redhat:enterprise_linux:8")) == []
