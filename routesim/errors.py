"""
Error types for the routesim control-plane simulator.

Every error is local to the call that raised it. The event clock records
failures of scheduled actions and carries on with the next event.
"""


class RouteSimError(Exception):
    """Base class for all simulator errors."""


class InvalidTimeError(RouteSimError, ValueError):
    """An event was scheduled earlier than the current simulated time."""

    def __init__(self, requested: float, now: float) -> None:
        super().__init__(f"Cannot schedule event at {requested}: clock is already at {now}")
        self.requested = requested
        self.now = now


class NoRouteError(RouteSimError, LookupError):
    """A route table was queried for a prefix it knows nothing about."""


class UnknownSpeakerError(RouteSimError, KeyError):
    """An action referred to an AS number with no registered speaker."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FaultAssertionError(RouteSimError):
    """An injected fault did not produce the expected table mutation."""


class ScenarioError(RouteSimError, ValueError):
    """A scenario definition is malformed."""
