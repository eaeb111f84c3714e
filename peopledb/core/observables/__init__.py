from peopledb.core.observables.event_bus import EventBus

__all__ = ["EventBus"]
