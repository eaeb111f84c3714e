from peopledb.core.utils.checks import first_not_none, ifnone
from peopledb.core.config import Config, CoreConfig, CoreSettings
from peopledb.core.base import PeopleDB, PeopleDBABC, PeopleDBABCMeta, PeopleDBMeta
from peopledb.core.logging.logger import get_logger, setup_logger
from peopledb.core.observables.event_bus import EventBus

setup_logger()  # Initialize the default logger

__all__ = [
    "Config",
    "CoreConfig",
    "CoreSettings",
    "EventBus",
    "first_not_none",
    "get_logger",
    "ifnone",
    "PeopleDB",
    "PeopleDBABC",
    "PeopleDBABCMeta",
    "PeopleDBMeta",
    "setup_logger",
]
