from typing import Dict, List

from pydantic import BaseModel, Field

from vulnfeed.models.index import Environment
from vulnfeed.models.vulnerability import Distribution, Package, Repository, Vulnerability


class VulnerabilityReport(BaseModel):
    """Matcher output: which vulnerabilities affect which packages of an image."""

    packages: Dict[str, Package] = Field(default_factory=dict)
    distributions: Dict[str, Distribution] = Field(default_factory=dict)
    repositories: Dict[str, Repository] = Field(default_factory=dict)
    environments: Dict[str, List[Environment]] = Field(default_factory=dict)
    vulnerabilities: Dict[str, Vulnerability] = Field(default_factory=dict)
    package_vulnerabilities: Dict[str, List[str]] = Field(default_factory=dict)
    enrichments: Dict[str, List[str]] = Field(default_factory=dict)
