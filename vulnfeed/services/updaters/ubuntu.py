"""
Ubuntu OVAL updaters.

The factory lists the distribution series from Launchpad and keeps every
active series whose OVAL database exists.
"""

import logging
from typing import List, Optional, Tuple

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.exceptions import ConfigurationError, FetchError, ParseError
from vulnfeed.core.http_utils import check_response, request_or_raise
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.oval import Definition, Root
from vulnfeed.services.fetcher import Compression
from vulnfeed.services.indexer.ubuntu import ubuntu_release
from vulnfeed.services.oval.document import links
from vulnfeed.services.oval.dpkg import dpkg_defs_to_vulns
from vulnfeed.services.severity import normalize_severity
from vulnfeed.services.updaters.base import (
    Config,
    OvalUpdater,
    UpdaterSet,
    UpdaterSetFactory,
    validate_url,
)

logger = logging.getLogger(__name__)


class UbuntuUpdater(OvalUpdater):
    def __init__(
        self,
        codename: str,
        version_id: str,
        url: Optional[str] = None,
        compression: Compression = Compression.AUTO,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.codename = codename
        self.dist = ubuntu_release(codename, version_id)
        super().__init__(
            url or settings.UBUNTU_OVAL_URL.format(release=codename),
            compression=compression,
            client=client,
        )

    @property
    def name(self) -> str:
        return f"ubuntu/updater/{self.codename}"

    def proto(self, definition: Definition) -> List[Vulnerability]:
        severity = definition.advisory.severity
        return [
            Vulnerability(
                updater=self.name,
                name=definition.title,
                description=definition.description,
                issued=definition.advisory.issued or definition.advisory.public_date,
                links=links(definition),
                severity=severity,
                normalized_severity=normalize_severity(severity, "ubuntu"),
                dist=self.dist,
            )
        ]

    def map(self, root: Root) -> List[Vulnerability]:
        return dpkg_defs_to_vulns(root, self.proto)


class UbuntuFactory(UpdaterSetFactory):
    """
    Configuration keys: ``url`` (Launchpad API root), ``name`` (distribution
    name, default ``ubuntu``) and ``force`` (list of ``{name, version}``
    series added without discovery).
    """

    name = "ubuntu"

    def __init__(self, api_url: Optional[str] = None):
        self.api_url = api_url or settings.UBUNTU_API_URL
        self.distribution = "ubuntu"
        self.force: List[Tuple[str, str]] = []
        self.client: Optional[httpx.AsyncClient] = None

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        config = config or {}
        self.client = client
        if config.get("url"):
            self.api_url = validate_url(config["url"], self.name)
        if config.get("name"):
            self.distribution = config["name"]
        try:
            self.force = [(entry["name"], entry["version"]) for entry in config.get("force") or []]
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"ubuntu: force entries need a name and a version: {e}") from e

    @property
    def series_url(self) -> str:
        base = self.api_url if self.api_url.endswith("/") else self.api_url + "/"
        return f"{base}{self.distribution}/series"

    async def _series(self) -> List[dict]:
        response = await request_or_raise(
            self.client,
            "GET",
            self.series_url,
            "ubuntu",
            headers={"Accept": "application/json"},
        )
        check_response(response, "ubuntu")
        try:
            entries = response.json()["entries"]
        except (ValueError, KeyError, TypeError) as e:
            raise ParseError(f"ubuntu: unexpected series collection: {e}") from e
        return entries

    async def _exists(self, url: str) -> bool:
        response = await request_or_raise(
            self.client,
            "HEAD",
            url,
            "ubuntu",
            headers={"Accept": "application/x-bzip2,application/xml;q=0.9"},
        )
        if response.status_code == 404:
            return False
        check_response(response, "ubuntu")
        return True

    async def updater_set(self) -> UpdaterSet:
        updaters = UpdaterSet()
        if self.client is None:
            logger.info("ubuntu: unconfigured, returning empty updater set")
            return updaters

        for entry in await self._series():
            name, version = entry.get("name", ""), entry.get("version", "")
            if not entry.get("active"):
                logger.debug(f"ubuntu: release {name} not active")
                continue
            url = settings.UBUNTU_OVAL_URL.format(release=name)
            if not await self._exists(url):
                logger.debug(f"ubuntu: OVAL database missing for {name} {version}, skipping")
                continue
            updaters.add(UbuntuUpdater(name, version, url=url, client=self.client))

        for name, version in self.force:
            if f"ubuntu/updater/{name}" in updaters:
                continue
            updaters.add(UbuntuUpdater(name, version, client=self.client))

        if not updaters:
            raise FetchError("ubuntu: no active series with OVAL data found")
        logger.info(f"ubuntu: discovered {len(updaters)} series")
        return updaters
