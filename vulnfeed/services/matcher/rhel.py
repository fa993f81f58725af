from typing import List

from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.models.index import IndexRecord
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.services import cpe
from vulnfeed.services.matcher.base import MatchConstraint, RPMMatcher


class RHELMatcher(RPMMatcher):
    """
    RPM matcher scoped by product CPE.

    Vulnerabilities carry the affected product CPE as their repository;
    when the installed package's repository is a CPE-keyed one too, the
    installed CPE must fall within the advisory's.
    """

    name = "rhel"

    def filter(self, record: IndexRecord) -> bool:
        return record.distribution is not None and record.distribution.did == "rhel"

    def query(self) -> List[MatchConstraint]:
        return [
            MatchConstraint.DISTRIBUTION_DID,
            MatchConstraint.DISTRIBUTION_VERSION,
            MatchConstraint.PACKAGE_MODULE,
        ]

    def vulnerable(self, record: IndexRecord, vuln: Vulnerability) -> bool:
        if (
            vuln.repo is not None
            and vuln.repo.key == RHEL_REPOSITORY_KEY
            and record.repository is not None
            and record.repository.key == RHEL_REPOSITORY_KEY
            and not cpe.matches(vuln.repo.cpe, record.repository.cpe)
        ):
            return False
        return super().vulnerable(record, vuln)
