"""
Red Hat Enterprise Linux OVAL v2 updaters.

Red Hat lists its OVAL v2 files in a PULP_MANIFEST next to them. Each
major release gets one updater; vulnerabilities carry the product CPE
as a repository so the matcher can scope them to content sets.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.core.exceptions import FetchError
from vulnfeed.core.http_utils import check_response, request_or_raise
from vulnfeed.models.vulnerability import Repository, Vulnerability
from vulnfeed.schemas.oval import Definition, Root
from vulnfeed.services import cpe
from vulnfeed.services.fetcher import Compression
from vulnfeed.services.indexer.rhel import rhel_release
from vulnfeed.services.oval.document import links
from vulnfeed.services.oval.rpm import (
    CVE_DEFINITION,
    NONE_DEFINITION,
    UNAFFECTED_DEFINITION,
    definition_type,
    rpm_defs_to_vulns,
)
from vulnfeed.services.severity import normalize_severity
from vulnfeed.services.updaters.base import (
    Config,
    OvalUpdater,
    UpdaterSet,
    UpdaterSetFactory,
    validate_url,
)

logger = logging.getLogger(__name__)

MANIFEST_ENTRY = re.compile(r"^RHEL(?P<major>\d+)/(?P<stem>rhel-\d+(?P<unpatched>-including-unpatched)?)\.oval\.xml\.bz2$")
MINIMUM_RELEASE = 6


class RHELUpdater(OvalUpdater):
    """Updater for one RHEL OVAL v2 file."""

    def __init__(
        self,
        release: int,
        url: str,
        name: str = "",
        compression: Compression = Compression.BZIP2,
        client: Optional[httpx.AsyncClient] = None,
        ignore_unpatched: bool = False,
    ):
        self.release = release
        self._name = name or f"RHEL{release}-rhel-{release}"
        self.ignore_unpatched = ignore_unpatched
        self.dist = rhel_release(str(release))
        super().__init__(url, compression=compression, client=client)

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        super().configure(config, client)
        if config and config.get("ignore_unpatched") is not None:
            self.ignore_unpatched = bool(config["ignore_unpatched"])

    def skip_definition(self, kind: str) -> bool:
        return (
            kind in (UNAFFECTED_DEFINITION, NONE_DEFINITION)
            or (self.ignore_unpatched and kind == CVE_DEFINITION)
        )

    def proto(self, definition: Definition) -> List[Vulnerability]:
        if self.skip_definition(definition_type(definition)):
            return []
        severity = definition.advisory.severity
        out: List[Vulnerability] = []
        for affected in definition.advisory.affected_cpes:
            if not affected:
                continue
            if not cpe.is_valid(affected):
                logger.debug(f"{definition.id}: ignoring malformed CPE {affected!r}")
                continue
            out.append(
                Vulnerability(
                    updater=self.name,
                    name=definition.title,
                    description=definition.description,
                    issued=definition.advisory.issued,
                    links=links(definition),
                    severity=severity,
                    normalized_severity=normalize_severity(severity, "rhel"),
                    repo=Repository(name=affected, key=RHEL_REPOSITORY_KEY, cpe=affected),
                    dist=self.dist,
                )
            )
        return out

    def map(self, root: Root) -> List[Vulnerability]:
        return rpm_defs_to_vulns(root, self.proto)


class RHELFactory(UpdaterSetFactory):
    """
    Build RHEL updaters from the OVAL v2 PULP_MANIFEST.

    Configuration keys: ``url`` (manifest location) and ``ignore_unpatched``
    (use the patched-only files and skip unpatched CVE definitions).
    """

    name = "rhel"

    def __init__(self, manifest_url: Optional[str] = None, ignore_unpatched: bool = False):
        self.manifest_url = manifest_url or settings.RHEL_MANIFEST_URL
        self.ignore_unpatched = ignore_unpatched
        self.client: Optional[httpx.AsyncClient] = None

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        config = config or {}
        self.client = client
        if config.get("url"):
            self.manifest_url = validate_url(config["url"], self.name)
            logger.info(f"rhel: configured manifest URL {self.manifest_url}")
        if config.get("ignore_unpatched") is not None:
            self.ignore_unpatched = bool(config["ignore_unpatched"])

    def select(self, manifest: str) -> Dict[int, Tuple[str, str]]:
        """Release → (path, updater name) chosen from manifest lines of ``path,checksum,size``."""
        chosen: Dict[int, Tuple[str, str]] = {}
        for line in manifest.splitlines():
            path = line.split(",")[0].strip()
            match = MANIFEST_ENTRY.match(path)
            if match is None:
                continue
            release = int(match.group("major"))
            if release < MINIMUM_RELEASE:
                continue
            if bool(match.group("unpatched")) == self.ignore_unpatched:
                continue
            chosen[release] = (path, f"RHEL{release}-{match.group('stem')}")
        return chosen

    async def updater_set(self) -> UpdaterSet:
        updaters = UpdaterSet()
        if self.client is None:
            logger.info("rhel: unconfigured, returning empty updater set")
            return updaters

        response = await request_or_raise(self.client, "GET", self.manifest_url, "rhel")
        check_response(response, "rhel")
        chosen = self.select(response.text)
        if not chosen:
            raise FetchError(f"rhel: no OVAL files listed in {self.manifest_url}")

        for release in sorted(chosen):
            path, name = chosen[release]
            updaters.add(
                RHELUpdater(
                    release,
                    url=urljoin(self.manifest_url, path),
                    name=name,
                    client=self.client,
                    ignore_unpatched=self.ignore_unpatched,
                )
            )
        logger.info(f"rhel: discovered {len(updaters)} releases")
        return updaters
