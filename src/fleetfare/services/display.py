"""Passenger display: renders the last fare lifecycle event it received."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from ..schemas.events import FareConfirmed, FareReset, QuoteShown
from .broadcast import BroadcastChannel, FareEvent
from .currency import format_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DisplayIdle:
    status: str = "idle"


@dataclass(frozen=True, slots=True)
class ShowingQuote:
    fare: int
    currency: str
    destination_name: str
    status: str = "quote"


@dataclass(frozen=True, slots=True)
class ShowingConfirmed:
    fare: int
    currency: str
    destination_name: str
    ticket_id: str
    status: str = "confirmed"


DisplayState = Union[DisplayIdle, ShowingQuote, ShowingConfirmed]


def reduce(state: DisplayState, event: FareEvent) -> DisplayState:
    """Every event fully determines the next state; the previous one never matters."""
    if isinstance(event, QuoteShown):
        return ShowingQuote(fare=event.fare, currency=event.currency, destination_name=event.destination_name)
    if isinstance(event, FareConfirmed):
        return ShowingConfirmed(
            fare=event.fare,
            currency=event.currency,
            destination_name=event.destination_name,
            ticket_id=event.ticket_id,
        )
    if isinstance(event, FareReset):
        return DisplayIdle()
    logger.warning(f"Ignoring unknown fare event: {event!r}")
    return state


def describe(state: DisplayState) -> dict:
    """JSON view of a display state for clients."""
    if isinstance(state, ShowingQuote):
        return {
            "status": state.status,
            "fare": state.fare,
            "currency": state.currency,
            "fare_display": format_amount(state.fare, state.currency),
            "destination_name": state.destination_name,
        }
    if isinstance(state, ShowingConfirmed):
        return {
            "status": state.status,
            "fare": state.fare,
            "currency": state.currency,
            "fare_display": format_amount(state.fare, state.currency),
            "destination_name": state.destination_name,
            "ticket_id": state.ticket_id,
        }
    return {"status": "idle"}


class PassengerDisplay:
    def __init__(self, on_change: Callable[[DisplayState], None] | None = None) -> None:
        self.state: DisplayState = DisplayIdle()
        self._on_change = on_change
        self._unsubscribe: Callable[[], None] | None = None

    def apply(self, event: FareEvent) -> DisplayState:
        self.state = reduce(self.state, event)
        if self._on_change is not None:
            self._on_change(self.state)
        return self.state

    def attach(self, channel: BroadcastChannel) -> None:
        self.detach()
        self._unsubscribe = channel.subscribe(self.apply)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def view(self) -> dict:
        return describe(self.state)
