import uuid
from collections import defaultdict
from typing import Callable, Dict, List, Union

from peopledb.core.logging.logger import get_logger

logger = get_logger("core.observables.event_bus")


class EventBus:
    """Named events with keyword payloads.

    Handlers are called synchronously, in subscription order, with the keyword arguments passed to the emit call.
    :meth:`emit` lets a handler's exception reach the emitter; :meth:`emit_safely` logs it and carries on, for
    emitters that promise not to raise.

    Example::

        from peopledb.core import EventBus

        bus = EventBus()
        handler_id = bus.subscribe("connected", lambda uri, db_name: print(f"Connected to {uri}/{db_name}"))

        bus.emit("connected", uri="mongodb://localhost:27017", db_name="peopledb")
        # Connected to mongodb://localhost:27017/peopledb

        bus.unsubscribe("connected", handler_id)
    """

    def __init__(self):
        self._handlers: Dict[str, Dict[str, Callable]] = defaultdict(dict)

    def subscribe(self, event_name: str, handler: Callable) -> str:
        """Register ``handler`` for ``event_name`` and return its subscription id."""
        handler_id = str(uuid.uuid4())
        self._handlers[event_name][handler_id] = handler
        return handler_id

    def unsubscribe(self, event_name: str, handler_or_id: Union[Callable, str]) -> int:
        """Remove a subscription by id, or every subscription of a handler. Returns how many were removed."""
        handlers = self._handlers.get(event_name, {})
        if isinstance(handler_or_id, str):
            return 1 if handlers.pop(handler_or_id, None) is not None else 0
        matching = [handler_id for handler_id, handler in handlers.items() if handler == handler_or_id]
        for handler_id in matching:
            del handlers[handler_id]
        return len(matching)

    def has_subscribers(self, event_name: str) -> bool:
        return bool(self._handlers.get(event_name))

    def emit(self, event_name: str, **kwargs) -> None:
        """Call every handler of ``event_name``. The first handler that raises stops the emit."""
        for handler in list(self._handlers.get(event_name, {}).values()):
            handler(**kwargs)

    def emit_safely(self, event_name: str, **kwargs) -> List[Exception]:
        """Call every handler of ``event_name``, logging handler failures instead of raising them.

        Returns:
            The exceptions raised by handlers, in call order.
        """
        failures = []
        for handler in list(self._handlers.get(event_name, {}).values()):
            try:
                handler(**kwargs)
            except Exception as e:
                logger.exception(f"Handler for event {event_name!r} failed: {e}")
                failures.append(e)
        return failures
