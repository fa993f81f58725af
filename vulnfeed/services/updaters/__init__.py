from vulnfeed.services.updaters.base import (
    FeedUpdater,
    OvalUpdater,
    StaticSet,
    Updater,
    UpdaterSet,
    UpdaterSetFactory,
)
from vulnfeed.services.updaters.oracle import OracleFactory, OracleUpdater
from vulnfeed.services.updaters.rhel import RHELFactory, RHELUpdater
from vulnfeed.services.updaters.ubuntu import UbuntuFactory, UbuntuUpdater

__all__ = [
    "FeedUpdater",
    "OracleFactory",
    "OracleUpdater",
    "OvalUpdater",
    "RHELFactory",
    "RHELUpdater",
    "StaticSet",
    "UbuntuFactory",
    "UbuntuUpdater",
    "Updater",
    "UpdaterSet",
    "UpdaterSetFactory",
]
