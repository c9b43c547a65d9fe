"""
Event bus for the routesim control-plane simulator.

Speakers and the fault injector describe what they did as plain event
dictionaries; the bus hands those to whoever subscribed (output adapters,
the CLI, tests). The bus does not interpret events.
"""

from collections.abc import Callable, Iterable
from typing import Any

Event = dict[str, Any]
Subscriber = Callable[[Event], None]


class EventBus:
    """
    Simple synchronous publish-subscribe bus.

    Subscribers are called in registration order. A subscriber may restrict
    itself to a set of event types. If a subscriber raises, propagation stops
    and the error surfaces to the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[Subscriber, frozenset[str] | None]] = []
        self._closed: bool = False

    def subscribe(self, handler: Subscriber, event_types: Iterable[str] | None = None) -> None:
        """
        Register a handler, optionally only for the given event types.
        """
        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed event bus")

        types = frozenset(event_types) if event_types is not None else None
        self._subscribers.append((handler, types))

    def publish(self, event: Event) -> None:
        """
        Deliver an event to every interested subscriber.
        """
        if self._closed:
            raise RuntimeError("Cannot publish to a closed event bus")

        event_type = event.get("event_type")
        for handler, types in self._subscribers:
            if types is None or event_type in types:
                handler(event)

    def close(self) -> None:
        """
        Close the bus. No further subscriptions or publications are allowed.
        """
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
