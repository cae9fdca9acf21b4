from typing import Type, Callable, List, Dict, Any, Optional
from abwalk.domain.events import Event

class EventBus:
    """Synchronous pub/sub used as the pipeline's reporting sink.

    Subscribers of a base event class also receive its subclasses, so
    subscribing to `Event` sees everything.
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[Event], callback: Optional[Callable[[Any], None]] = None):
        """Subscribes a callback to an event type. Can be used as a decorator."""
        if callback is None:
            def decorator(func: Callable[[Any], None]):
                self.subscribe(event_type, func)
                return func
            return decorator

        self._subscribers.setdefault(event_type, []).append(callback)
        return callback

    def publish(self, event: Event):
        """Delivers the event to subscribers of its class and of every base class."""
        for event_type in type(event).__mro__:
            for callback in list(self._subscribers.get(event_type, ())):
                callback(event)
            if event_type is Event:
                break
