from peopledb.core.base.peopledb_base import PeopleDB, PeopleDBABC, PeopleDBABCMeta, PeopleDBMeta

__all__ = ["PeopleDB", "PeopleDBABC", "PeopleDBABCMeta", "PeopleDBMeta"]
