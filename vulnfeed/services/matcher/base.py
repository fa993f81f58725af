"""
Matcher contract.

A matcher decides which index records it is interested in, which fields
the store must match when fetching candidate vulnerabilities, and whether
a candidate actually applies to the installed package.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List

from vulnfeed.models.index import IndexRecord
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.services.matcher import rpmver

VersionCompare = Callable[[str, str], int]


class MatchConstraint(str, Enum):
    DISTRIBUTION_DID = "distribution_did"
    DISTRIBUTION_NAME = "distribution_name"
    DISTRIBUTION_VERSION = "distribution_version"
    DISTRIBUTION_VERSION_ID = "distribution_version_id"
    DISTRIBUTION_VERSION_CODE_NAME = "distribution_version_code_name"
    PACKAGE_MODULE = "package_module"
    REPOSITORY_NAME = "repository_name"


def _field(record: IndexRecord, vuln: Vulnerability, constraint: MatchConstraint):
    dist = record.distribution
    if constraint is MatchConstraint.DISTRIBUTION_DID:
        return (dist.did if dist else ""), vuln.dist.did
    if constraint is MatchConstraint.DISTRIBUTION_NAME:
        return (dist.name if dist else ""), vuln.dist.name
    if constraint is MatchConstraint.DISTRIBUTION_VERSION:
        return (dist.version if dist else ""), vuln.dist.version
    if constraint is MatchConstraint.DISTRIBUTION_VERSION_ID:
        return (dist.version_id if dist else ""), vuln.dist.version_id
    if constraint is MatchConstraint.DISTRIBUTION_VERSION_CODE_NAME:
        return (dist.version_code_name if dist else ""), vuln.dist.version_code_name
    if constraint is MatchConstraint.PACKAGE_MODULE:
        return record.package.module, (vuln.package.module if vuln.package else "")
    if constraint is MatchConstraint.REPOSITORY_NAME:
        return (record.repository.name if record.repository else ""), (vuln.repo.name if vuln.repo else "")
    raise ValueError(f"unknown constraint {constraint!r}")


def arch_matches(record: IndexRecord, vuln: Vulnerability) -> bool:
    """Apply the recorded architecture operation to the installed package."""
    if vuln.package is None:
        return True
    return vuln.arch_operation.cmp(record.package.arch, vuln.package.arch)


def affected(installed: str, vuln: Vulnerability, compare: VersionCompare) -> bool:
    """
    Version check shared by every package format.

    A fixed version bounds the range exclusively, a vulnerable version
    inclusively. With neither, every installed version is affected.
    """
    if vuln.fixed_in_version:
        return compare(installed, vuln.fixed_in_version) < 0
    if vuln.vulnerable_version:
        return compare(installed, vuln.vulnerable_version) <= 0
    return True


def satisfies(record: IndexRecord, vuln: Vulnerability, constraints: List[MatchConstraint]) -> bool:
    """Apply query constraints in memory, the way a store would when selecting candidates."""
    if vuln.package is None or vuln.package.name != record.package.name:
        return False
    return all(left == right for left, right in (_field(record, vuln, c) for c in constraints))


class Matcher(ABC):
    name: str

    @abstractmethod
    def filter(self, record: IndexRecord) -> bool:
        """Whether this matcher handles ``record`` at all."""

    @abstractmethod
    def query(self) -> List[MatchConstraint]:
        """Fields that must be equal between record and candidate."""

    @abstractmethod
    def vulnerable(self, record: IndexRecord, vuln: Vulnerability) -> bool:
        """Whether ``vuln`` applies to the installed package of ``record``."""

    def match(self, record: IndexRecord, candidates: List[Vulnerability]) -> List[Vulnerability]:
        """Candidates that satisfy the query and affect the record."""
        if not self.filter(record):
            return []
        constraints = self.query()
        return [v for v in candidates if satisfies(record, v, constraints) and self.vulnerable(record, v)]


class RPMMatcher(Matcher):
    """
    Version logic shared by RPM-based distributions.

    A vulnerability with a fixed version affects installs older than it;
    one with only a vulnerable version affects installs up to and including
    it; one with neither affects every install.
    """

    def vulnerable(self, record: IndexRecord, vuln: Vulnerability) -> bool:
        if vuln.package is not None and record.package.module != vuln.package.module:
            return False
        if not arch_matches(record, vuln):
            return False
        return affected(record.package.version, vuln, rpmver.compare_strings)
