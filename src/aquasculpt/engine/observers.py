"""Observer protocol and EventBus for synchronous event dispatch.

Stages only touch the mesh builder; everything else that happens during a
run (timing, console progress, export) is an observer reacting to events.

Dispatch rules:
- Delivery is synchronous and in subscription order.
- Subscriptions are typed; subscribing to ``Event`` receives everything.
- An observer that raises is logged and skipped; delivery continues.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Protocol, runtime_checkable

from aquasculpt.engine.events import Event

logger = logging.getLogger(__name__)


@runtime_checkable
class Observer(Protocol):
    """Anything with an ``on_event(event)`` method.

    Example::

        class PrintObserver:
            def on_event(self, event: Event) -> None:
                print(type(event).__name__)

        bus = EventBus()
        bus.subscribe(StageComplete, PrintObserver())
    """

    def on_event(self, event: Event) -> None:
        """Receive a dispatched event.

        Args:
            event: One of the event types in ``aquasculpt.engine.events``.
        """
        ...


class EventBus:
    """Typed, synchronous event dispatcher.

    An emitted event reaches observers subscribed to its exact type first,
    then observers subscribed to each ancestor type in MRO order. An observer
    subscribed at several levels is called once.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[type[Event], list[Observer]] = defaultdict(list)

    def subscribe(self, event_type: type[Event], observer: Observer) -> None:
        """Register *observer* for *event_type* (and its subclasses).

        Args:
            event_type: Event class to subscribe to; ``Event`` for everything.
            observer: Object satisfying :class:`Observer`.
        """
        self._subscriptions[event_type].append(observer)

    def unsubscribe(self, event_type: type[Event], observer: Observer) -> None:
        """Remove *observer* from *event_type*; a no-op if not subscribed."""
        observers = self._subscriptions.get(event_type)
        if observers and observer in observers:
            observers.remove(observer)

    def emit(self, event: Event) -> None:
        """Deliver *event* to every matching observer.

        Args:
            event: The event to dispatch.
        """
        seen: set[int] = set()
        for ancestor in type(event).__mro__:
            if not (isinstance(ancestor, type) and issubclass(ancestor, Event)):
                continue
            for obs in list(self._subscriptions.get(ancestor, [])):
                if id(obs) in seen:
                    continue
                seen.add(id(obs))
                try:
                    obs.on_event(event)
                except Exception:
                    logger.warning(
                        "Observer %r raised on %s; continuing delivery.",
                        obs,
                        type(event).__name__,
                        exc_info=True,
                    )


__all__ = ["EventBus", "Observer"]
