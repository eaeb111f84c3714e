from peopledb.database.repositories.person_repository import PersonRepository

__all__ = ["PersonRepository"]
