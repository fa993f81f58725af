"""
Repository to CPE mapping.

Red Hat publishes a JSON document mapping content-set (repository) names
to the product CPEs they ship. Layers identify their repositories by
name; this mapping turns them into CPE-keyed Repository records that the
RHEL matcher understands.
"""

import logging
from email.utils import parsedate_to_datetime
from typing import Callable, Dict, Iterable, List, Optional

import httpx

from vulnfeed.core.cache import RefreshingMapping
from vulnfeed.core.config import settings
from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.core.exceptions import ParseError
from vulnfeed.core.http_utils import check_response, request_or_raise
from vulnfeed.models.vulnerability import Repository

logger = logging.getLogger(__name__)


class RepositoryCPEMapping(RefreshingMapping[List[str]]):
    """Content set name → CPEs, refreshed when Last-Modified moves forward."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: Optional[str] = None,
        min_interval: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(
            min_interval=(
                min_interval if min_interval is not None else settings.MAPPING_REFRESH_INTERVAL_SECONDS
            ),
            **kwargs,
        )
        self.client = client
        self.url = url or settings.REPO2CPE_URL
        self.last_modified: str = ""

    def _newer(self, last_modified: str) -> bool:
        if not last_modified or not self.last_modified:
            return True
        try:
            return parsedate_to_datetime(last_modified) > parsedate_to_datetime(self.last_modified)
        except (TypeError, ValueError):
            return last_modified != self.last_modified

    async def load(self) -> Optional[Dict[str, List[str]]]:
        if self.last_modified:
            head = await request_or_raise(self.client, "HEAD", self.url, "repo2cpe")
            if head.status_code == 200 and not self._newer(head.headers.get("last-modified", "")):
                logger.debug("repo2cpe: mapping not modified")
                return None

        logger.info(f"repo2cpe: fetching mapping file {self.url}")
        response = await request_or_raise(self.client, "GET", self.url, "repo2cpe")
        check_response(response, "repo2cpe")
        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"repo2cpe: invalid mapping document: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise ParseError("repo2cpe: mapping document has no data object")

        mapping: Dict[str, List[str]] = {}
        for repo, entry in data["data"].items():
            cpes = entry.get("cpes", []) if isinstance(entry, dict) else []
            mapping[repo] = [c for c in cpes if isinstance(c, str)]
        self.last_modified = response.headers.get("last-modified", "")
        return mapping

    def cpes(self, repositories: Iterable[str]) -> List[str]:
        """Unique CPEs for the given content sets, in first-seen order."""
        mapping = self.mapping
        out: List[str] = []
        for repo in repositories:
            cpes = mapping.get(repo)
            if cpes is None:
                logger.debug(f"repo2cpe: repository {repo!r} is not present in the mapping")
                continue
            for cpe in cpes:
                if cpe not in out:
                    out.append(cpe)
        return out

    def repositories(
        self,
        names: Iterable[str],
        make_id: Callable[[str], str] = lambda cpe: cpe,
    ) -> List[Repository]:
        """Repository records keyed for RHEL matching, one per mapped CPE."""
        return [
            Repository(id=make_id(cpe), name=cpe, key=RHEL_REPOSITORY_KEY, cpe=cpe)
            for cpe in self.cpes(names)
        ]
