from vulnfeed.services.matcher.base import Matcher, MatchConstraint, RPMMatcher, satisfies
from vulnfeed.services.matcher.oracle import OracleMatcher
from vulnfeed.services.matcher.rhel import RHELMatcher
from vulnfeed.services.matcher.ubuntu import UbuntuMatcher

__all__ = [
    "MatchConstraint",
    "Matcher",
    "OracleMatcher",
    "RHELMatcher",
    "RPMMatcher",
    "UbuntuMatcher",
    "satisfies",
]
