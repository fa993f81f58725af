"""
Oracle Linux ELSA updaters.

Oracle publishes one bzip2 compressed OVAL file per year. The factory
discovers the available years from the index page and keeps those inside
a rolling window.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.exceptions import ConfigurationError, FetchError
from vulnfeed.core.http_utils import check_response, request_or_raise
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.oval import Definition, Root
from vulnfeed.services import cpe
from vulnfeed.services.fetcher import Compression
from vulnfeed.services.indexer.oracle import oracle_linux
from vulnfeed.services.oval.document import links
from vulnfeed.services.oval.rpm import rpm_defs_to_vulns
from vulnfeed.services.severity import normalize_severity
from vulnfeed.services.updaters.base import (
    Config,
    OvalUpdater,
    UpdaterSet,
    UpdaterSetFactory,
    validate_url,
)

logger = logging.getLogger(__name__)

INDEX_PATTERN = re.compile(r'href="(com\.oracle\.elsa-(\d{4})\.xml\.bz2)"')
PLATFORM_PATTERN = re.compile(r"Oracle Linux (\d+)")
KSPLICE_EDITION = "userspace_ksplice"


def keep_definition(definition: Definition) -> bool:
    """
    Apply the ksplice filter to one definition.

    Ksplice patches are never applicable inside containers, so a definition
    that only lists ksplice CPEs is dropped. Mixed lists are kept.
    """
    cpes = [c for c in definition.advisory.affected_cpes if c]
    ksplice = [c for c in cpes if cpe.attribute(c, "edition") == KSPLICE_EDITION]
    if not ksplice:
        return True
    if len(ksplice) == len(cpes):
        logger.debug(f"{definition.id}: skipping ksplice-only definition")
        return False
    logger.warning(
        f"{definition.id}: definition lists both ksplice and userspace CPEs, keeping it"
    )
    return True


class OracleUpdater(OvalUpdater):
    """Updater for one year of Oracle ELSA advisories."""

    def __init__(
        self,
        year: int,
        url: Optional[str] = None,
        compression: Compression = Compression.BZIP2,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.year = year
        super().__init__(
            url or f"{settings.ORACLE_BASE_URL}com.oracle.elsa-{year}.xml.bz2",
            compression=compression,
            client=client,
        )

    @property
    def name(self) -> str:
        return f"oracle-{self.year}-updater"

    def proto(self, definition: Definition) -> List[Vulnerability]:
        if not keep_definition(definition):
            return []
        versions: List[str] = []
        for affected in definition.affecteds:
            for platform in affected.platforms:
                match = PLATFORM_PATTERN.search(platform)
                if match and match.group(1) not in versions:
                    versions.append(match.group(1))
        if not versions:
            logger.debug(f"{definition.id}: no Oracle Linux platform listed")
            return []

        name = definition.references[0].ref_id if definition.references else definition.title
        severity = definition.advisory.severity
        return [
            Vulnerability(
                updater=self.name,
                name=name,
                description=definition.description.strip(),
                issued=definition.advisory.issued,
                links=links(definition),
                severity=severity,
                normalized_severity=normalize_severity(severity, "oracle"),
                dist=oracle_linux(version),
            )
            for version in versions
        ]

    def map(self, root: Root) -> List[Vulnerability]:
        return rpm_defs_to_vulns(root, self.proto)


class OracleFactory(UpdaterSetFactory):
    """
    Discover yearly ELSA feeds from the Oracle index page.

    Configuration keys: ``url`` (index base, trailing slash enforced),
    ``years`` (rolling window; 0 disables the filter) and ``compression``
    (codec of the yearly files, bzip2 unless overridden).
    """

    name = "oracle"

    def __init__(
        self,
        base_url: Optional[str] = None,
        window: Optional[int] = None,
        current_year: Optional[int] = None,
    ):
        self.base_url = _with_slash(base_url or settings.ORACLE_BASE_URL)
        self.window = settings.ORACLE_YEAR_WINDOW if window is None else window
        self.current_year = current_year
        self.compression = Compression.BZIP2
        self.client: Optional[httpx.AsyncClient] = None

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        config = config or {}
        self.client = client
        if config.get("url"):
            self.base_url = _with_slash(validate_url(config["url"], self.name))
            logger.info(f"oracle: configured URL {self.base_url}")
        if config.get("years") is not None:
            try:
                self.window = int(config["years"])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"oracle: invalid years {config['years']!r}") from e
        if config.get("compression"):
            self.compression = Compression.parse(config["compression"])

    async def updater_set(self) -> UpdaterSet:
        updaters = UpdaterSet()
        if self.client is None:
            logger.info("oracle: unconfigured, returning empty updater set")
            return updaters

        response = await request_or_raise(self.client, "GET", self.base_url, "oracle")
        check_response(response, "oracle")

        files: Dict[int, str] = {}
        for match in INDEX_PATTERN.finditer(response.text):
            files.setdefault(int(match.group(2)), match.group(1))
        if not files:
            raise FetchError(f"oracle: no feed files found at {self.base_url}")

        year_now = self.current_year or datetime.now(timezone.utc).year
        cutoff = year_now - self.window
        for year in sorted(files, reverse=True):
            if self.window and year < cutoff:
                logger.debug(f"oracle: skipping {year}, outside the {self.window} year window")
                continue
            updaters.add(
                OracleUpdater(
                    year,
                    url=self.base_url + files[year],
                    compression=self.compression,
                    client=self.client,
                )
            )
        logger.info(f"oracle: discovered {len(updaters)} yearly feeds")
        return updaters


def _with_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"
