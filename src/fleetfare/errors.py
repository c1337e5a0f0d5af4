"""Exception taxonomy shared by the stores, controllers and routes."""

from __future__ import annotations


class FareEngineError(Exception):
    """Base class for recoverable fare engine failures."""


class NotFoundError(FareEngineError):
    """A referenced destination, quote or ticket does not exist."""


class StoreUnavailable(FareEngineError):
    """The persistent store could not be reached or rejected the request."""


class LocationUnavailable(FareEngineError):
    """No coordinate could be obtained from any location source."""


class InvalidTransition(FareEngineError):
    """The driver terminal cannot perform an action in its current state."""


class TerminalBusy(FareEngineError):
    """Another driver terminal action is still in flight."""
