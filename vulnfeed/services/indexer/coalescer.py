"""
Layer coalescing.

Combines per-layer artifacts, bottom layer first, into the index of the
whole image. Build systems do not stamp product information into every
layer, so vendor repositories found anywhere in the stack are propagated
to all layers before packages are associated with them.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple
from urllib.parse import parse_qs, urlsplit

from vulnfeed.models.index import Environment, IndexReport, LayerArtifacts
from vulnfeed.models.vulnerability import Distribution, Package, Repository

logger = logging.getLogger(__name__)


def _query(value: str) -> Dict[str, List[str]]:
    if not value:
        return {}
    parts = urlsplit(value)
    query = parts.query if parts.query else (value if "=" in value and not parts.scheme else "")
    return parse_qs(query)


def repoids(value: str) -> List[str]:
    """The ``repoid`` query parameters of a repository hint or URI."""
    return _query(value).get("repoid", [])


class Coalescer:
    """
    Merge layer artifacts into an IndexReport.

    Args:
        repository_key: When set, only repositories with this key take part
            in cross-layer propagation; others stay with their own layer
    """

    def __init__(self, repository_key: Optional[str] = None):
        self.repository_key = repository_key

    def _is_vendor(self, repo: Repository) -> bool:
        return self.repository_key is None or repo.key == self.repository_key

    def propagate_repositories(self, layers: Sequence[LayerArtifacts]) -> List[List[Repository]]:
        """Two passes, up then down the stack, filling layers without vendor repositories."""
        vendor = [[r for r in layer.repositories if self._is_vendor(r)] for layer in layers]
        other = [[r for r in layer.repositories if not self._is_vendor(r)] for layer in layers]

        last: List[Repository] = []
        for i in range(len(layers)):
            if vendor[i]:
                last = vendor[i]
            else:
                vendor[i] = last
        last = []
        for i in reversed(range(len(layers))):
            if vendor[i]:
                last = vendor[i]
            else:
                vendor[i] = last

        return [other[i] + vendor[i] for i in range(len(layers))]

    @staticmethod
    def current_distributions(layers: Sequence[LayerArtifacts]) -> List[Optional[Distribution]]:
        """The distribution in effect at each layer; later layers replace earlier ones."""
        current: Optional[Distribution] = None
        out: List[Optional[Distribution]] = []
        for layer in layers:
            if layer.distributions:
                current = layer.distributions[0]
            out.append(current)
        return out

    @staticmethod
    def group_packages(layers: Sequence[LayerArtifacts]) -> Dict[str, Dict[str, Tuple[Package, int]]]:
        """Package database → package id → (package, index of introducing layer)."""
        dbs: Dict[str, Dict[str, Tuple[Package, int]]] = {}
        for i, layer in enumerate(layers):
            for pkg in layer.packages:
                db = dbs.setdefault(pkg.package_db, {})
                if pkg.id not in db:
                    db[pkg.id] = (pkg, i)
        return dbs

    @staticmethod
    def still_present(
        layers: Sequence[LayerArtifacts],
        introduced: int,
        pkg_id: str,
        package_db: str,
    ) -> bool:
        """True if every higher layer that carries ``package_db`` still lists ``pkg_id``."""
        for layer in layers[introduced + 1:]:
            ids: Set[str] = {p.id for p in layer.packages if p.package_db == package_db}
            if ids and pkg_id not in ids:
                return False
        return True

    @staticmethod
    def associate(pkg: Package, repositories: Sequence[Repository]) -> List[str]:
        """Repository ids for a package, narrowed by its repoid hint when it has one."""
        wanted = repoids(pkg.repository_hint)
        if not wanted:
            return [r.id for r in repositories]
        return [r.id for r in repositories if set(repoids(r.uri)) & set(wanted)]

    def coalesce(self, layers: Sequence[LayerArtifacts]) -> IndexReport:
        report = IndexReport()
        if not layers:
            return report

        repositories = self.propagate_repositories(layers)
        distributions = self.current_distributions(layers)

        for layer_repos in repositories:
            for repo in layer_repos:
                report.repositories.setdefault(repo.id, repo)
        for dist in distributions:
            if dist is not None:
                report.distributions.setdefault(dist.id, dist)

        dropped = 0
        for package_db, entries in self.group_packages(layers).items():
            for pkg_id, (pkg, introduced) in entries.items():
                if not self.still_present(layers, introduced, pkg_id, package_db):
                    dropped += 1
                    continue
                dist = distributions[introduced]
                report.packages[pkg_id] = pkg
                report.environments.setdefault(pkg_id, []).append(
                    Environment(
                        package_db=package_db,
                        introduced_in=layers[introduced].hash,
                        distribution_id=dist.id if dist is not None else "",
                        repository_ids=self.associate(pkg, repositories[introduced]),
                    )
                )

        logger.debug(
            f"coalesced {len(layers)} layers: {len(report.packages)} packages, "
            f"{dropped} removed upstack, {len(report.repositories)} repositories"
        )
        return report
