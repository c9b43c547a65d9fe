"""
Event clock for the routesim control-plane simulator.

The clock is the only driver of execution. It holds a queue of scheduled
actions and fires them in causal order: earliest time first, and for equal
times in the order they were scheduled.

The clock does not sleep. It never runs two actions at once. A failing
action is recorded and the run carries on with the next event.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from routesim.errors import InvalidTimeError

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Any], None]


@dataclass(order=True)
class ScheduledEvent:
    time: int | float
    sequence: int
    action: Any = field(compare=False)


@dataclass(frozen=True)
class ActionFailure:
    """
    A scheduled action that raised while the clock was running.
    """

    time: int | float
    action: Any
    error: Exception

    def __str__(self) -> str:
        return f"t={self.time} {self.action!r}: {self.error}"


def _call(action: Any) -> None:
    action()


class EventClock:
    """
    Simulated-time scheduler.

    Time is a number of simulated seconds since the start of the run.
    Actions are handed to `dispatcher`; by default they are simply called.
    """

    def __init__(self, dispatcher: Dispatcher | None = None) -> None:
        self.dispatcher: Dispatcher = dispatcher or _call
        self._queue: list[ScheduledEvent] = []
        self._sequence = itertools.count()
        self._now: int | float = 0
        self.failures: list[ActionFailure] = []
        self.fired: int = 0

    def now(self) -> int | float:
        """
        Return the time of the last fired event, or 0 if none fired yet.
        """
        return self._now

    def schedule(self, time: int | float, action: Any) -> ScheduledEvent:
        """
        Enqueue `action` to fire at `time`.

        Scheduling earlier than the current time is an authoring error and
        raises InvalidTimeError. Scheduling at the current time is allowed.
        """
        if time < self._now:
            raise InvalidTimeError(time, self._now)

        event = ScheduledEvent(time, next(self._sequence), action)
        heapq.heappush(self._queue, event)
        return event

    def run(self, stop_time: int | float) -> list[ActionFailure]:
        """
        Fire every event due at or before `stop_time`.

        Events scheduled by a firing action are picked up in the same run
        if they are due. Events after `stop_time` stay queued.

        Returns the failures raised by actions during this run.
        """
        failures: list[ActionFailure] = []

        while self._queue and self._queue[0].time <= stop_time:
            event = heapq.heappop(self._queue)
            self._now = event.time
            self.fired += 1

            try:
                self.dispatcher(event.action)
            except Exception as exc:
                logger.error("Action %r failed at t=%s: %s", event.action, event.time, exc, exc_info=True)
                failures.append(ActionFailure(event.time, event.action, exc))

        self.failures.extend(failures)
        return failures

    def pending(self) -> int:
        """
        Number of events still queued.
        """
        return len(self._queue)

    def next_time(self) -> int | float | None:
        return self._queue[0].time if self._queue else None

    def reset(self) -> None:
        """
        Drop all queued events and return to time zero.
        """
        self._queue.clear()
        self._sequence = itertools.count()
        self._now = 0
        self.failures.clear()
        self.fired = 0
