from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from vulnfeed.models.vulnerability import Distribution, Package, Repository


class Environment(BaseModel):
    """Situates a package within an image."""

    package_db: str = ""
    introduced_in: str = ""
    distribution_id: str = ""
    repository_ids: List[str] = Field(default_factory=list)


class Layer(BaseModel):
    """An extracted layer: a digest and its regular files keyed by relative path."""

    hash: str
    files: Dict[str, bytes] = Field(default_factory=dict)

    def read(self, path: str) -> Optional[bytes]:
        return self.files.get(path.lstrip("/"))


class LayerArtifacts(BaseModel):
    """Per-layer indexing output consumed by the coalescer."""

    hash: str
    packages: List[Package] = Field(default_factory=list)
    distributions: List[Distribution] = Field(default_factory=list)
    repositories: List[Repository] = Field(default_factory=list)


class IndexRecord(BaseModel):
    """The flattened triple a matcher inspects."""

    package: Package
    distribution: Optional[Distribution] = None
    repository: Optional[Repository] = None


class IndexReport(BaseModel):
    packages: Dict[str, Package] = Field(default_factory=dict)
    distributions: Dict[str, Distribution] = Field(default_factory=dict)
    repositories: Dict[str, Repository] = Field(default_factory=dict)
    environments: Dict[str, List[Environment]] = Field(default_factory=dict)

    def index_records(self) -> List[IndexRecord]:
        """Expand every (package, environment, repository) into records."""
        records: List[IndexRecord] = []
        for pkg_id, pkg in self.packages.items():
            for env in self.environments.get(pkg_id, []):
                dist = self.distributions.get(env.distribution_id)
                if not env.repository_ids:
                    records.append(IndexRecord(package=pkg, distribution=dist))
                    continue
                for repo_id in env.repository_ids:
                    records.append(
                        IndexRecord(
                            package=pkg,
                            distribution=dist,
                            repository=self.repositories.get(repo_id),
                        )
                    )
        return records
