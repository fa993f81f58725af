from typing import List

from vulnfeed.models.index import IndexRecord
from vulnfeed.services.matcher.base import MatchConstraint, RPMMatcher


class OracleMatcher(RPMMatcher):
    name = "oracle"

    def filter(self, record: IndexRecord) -> bool:
        return record.distribution is not None and record.distribution.did == "ol"

    def query(self) -> List[MatchConstraint]:
        return [
            MatchConstraint.DISTRIBUTION_DID,
            MatchConstraint.DISTRIBUTION_NAME,
            MatchConstraint.DISTRIBUTION_VERSION,
            MatchConstraint.PACKAGE_MODULE,
        ]
