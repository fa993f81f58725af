"""
Updater framework.

An Updater owns one upstream vulnerability source: it fetches the feed
conditionally and parses the spooled body into Vulnerability records.
Factories enumerate updaters dynamically, typically one per release or
per year of a vendor feed.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

import httpx

from vulnfeed.core.exceptions import ConfigurationError, FetchError
from vulnfeed.core.metrics import track_parse, vulnerabilities_parsed_total
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.oval import Root
from vulnfeed.services.fetcher import Compression, Fetcher, FetchResult
from vulnfeed.services.oval.document import parse_document
from vulnfeed.services.spool import Spool

logger = logging.getLogger(__name__)

Config = Dict[str, Any]


def validate_url(value: str, owner: str) -> str:
    """Return ``value`` if it is an absolute http(s) URL, else raise ConfigurationError."""
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigurationError(f"{owner}: unable to parse URL {value!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"{owner}: URL {value!r} must be absolute http(s)")
    return value


def require_client(client: Optional[httpx.AsyncClient], owner: str) -> httpx.AsyncClient:
    if client is None:
        raise ConfigurationError(f"{owner}: an HTTP client is required")
    return client


class Updater(ABC):
    """One vulnerability source, identified by a stable name."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name; the persistence layer replaces batches by it."""

    @abstractmethod
    async def fetch(self, fingerprint: str = "") -> FetchResult:
        """Fetch the feed, raising Unchanged when nothing is new."""

    @abstractmethod
    def parse(self, spool: Spool) -> List[Vulnerability]:
        """Parse a fetched spool into vulnerability records."""

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        """Apply per-deployment settings; unknown keys are ignored."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FeedUpdater(Updater):
    """
    Updater backed by a single feed URL.

    Recognised configuration keys are ``url`` and ``compression``.
    """

    def __init__(
        self,
        url: str,
        compression: Compression = Compression.AUTO,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.compression = Compression.parse(compression)
        self.client = client

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        config = config or {}
        self.client = require_client(client, self.name)
        if config.get("url"):
            self.url = validate_url(config["url"], self.name)
            logger.info(f"{self.name}: configured URL {self.url}")
        if config.get("compression"):
            self.compression = Compression.parse(config["compression"])

    def fetcher(self) -> Fetcher:
        return Fetcher(self.url, compression=self.compression, name=self.name)

    async def fetch(self, fingerprint: str = "") -> FetchResult:
        if self.client is None:
            raise FetchError(f"{self.name}: not configured with an HTTP client")
        return await self.fetcher().fetch(self.client, fingerprint)


class OvalUpdater(FeedUpdater):
    """Feed updater whose body is an OVAL definitions document."""

    def parse(self, spool: Spool) -> List[Vulnerability]:
        logger.info(f"{self.name}: starting parse")
        with track_parse(self.name):
            try:
                root = parse_document(spool)
            finally:
                spool.close()
            vulns = self.map(root)
        vulnerabilities_parsed_total.labels(updater=self.name).inc(len(vulns))
        logger.info(
            f"{self.name}: found {len(vulns)} vulnerabilities in {len(root.definitions)} definitions"
        )
        return vulns

    @abstractmethod
    def map(self, root: Root) -> List[Vulnerability]:
        """Turn the decoded document into records."""


class UpdaterSet:
    """A name-unique collection of updaters."""

    def __init__(self, updaters: Optional[List[Updater]] = None):
        self._updaters: Dict[str, Updater] = {}
        for updater in updaters or []:
            self.add(updater)

    def add(self, updater: Updater) -> None:
        if updater.name in self._updaters:
            raise ValueError(f"updater {updater.name!r} already exists in set")
        self._updaters[updater.name] = updater

    def merge(self, other: "UpdaterSet") -> None:
        for updater in other:
            self.add(updater)

    def updaters(self) -> List[Updater]:
        return list(self._updaters.values())

    def names(self) -> List[str]:
        return list(self._updaters)

    def __iter__(self) -> Iterator[Updater]:
        return iter(self.updaters())

    def __len__(self) -> int:
        return len(self._updaters)

    def __contains__(self, name: str) -> bool:
        return name in self._updaters


class UpdaterSetFactory(ABC):
    """Produces the current set of updaters for one ecosystem."""

    name: str

    def configure(self, config: Optional[Config], client: Optional[httpx.AsyncClient]) -> None:
        return None

    @abstractmethod
    async def updater_set(self) -> UpdaterSet:
        """Enumerate updaters; discovery failures raise."""


class StaticSet(UpdaterSetFactory):
    """Factory over a fixed list of updaters; callers configure each one."""

    def __init__(self, name: str, updaters: List[Updater]):
        self.name = name
        self._updaters = updaters

    async def updater_set(self) -> UpdaterSet:
        return UpdaterSet(self._updaters)
