import logging
from typing import List

from debian.debian_support import version_compare

from vulnfeed.models.index import IndexRecord
from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.services.matcher.base import Matcher, MatchConstraint, affected, arch_matches

logger = logging.getLogger(__name__)


class UbuntuMatcher(Matcher):
    """DPKG matcher; versions are ordered the way dpkg orders them."""

    name = "ubuntu"

    def filter(self, record: IndexRecord) -> bool:
        return record.distribution is not None and record.distribution.did == "ubuntu"

    def query(self) -> List[MatchConstraint]:
        return [
            MatchConstraint.DISTRIBUTION_DID,
            MatchConstraint.DISTRIBUTION_NAME,
            MatchConstraint.DISTRIBUTION_VERSION_ID,
        ]

    def vulnerable(self, record: IndexRecord, vuln: Vulnerability) -> bool:
        if not arch_matches(record, vuln):
            return False
        try:
            return affected(record.package.version, vuln, version_compare)
        except ValueError as e:
            logger.debug(f"{vuln.name}: cannot compare {record.package.name} {record.package.version!r}: {e}")
            return False
