"""Driver terminal: the fare state machine behind the driver-facing screen."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from ..config import settings
from ..data.destinations_repository import DestinationCatalogue
from ..errors import (
    FareEngineError,
    InvalidTransition,
    LocationUnavailable,
    NotFoundError,
    StoreUnavailable,
    TerminalBusy,
)
from ..models.domain import Coordinate, Destination, FareQuote, Ticket
from ..persistence.quotes import QuoteStore
from ..persistence.tickets import TicketStore
from ..schemas.events import FareConfirmed, FareReset, QuoteShown
from .broadcast import BroadcastChannel, BroadcastHub, open_channel
from .location import DeviceFix, LocationResolver, LocationSource, default_coordinate

logger = logging.getLogger(__name__)


class TerminalState(str, Enum):
    """Driver terminal lifecycle states."""

    IDLE = "idle"
    DESTINATION_SELECTED = "destination_selected"
    QUOTE_READY = "quote_ready"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"


VALID_TRANSITIONS: dict[TerminalState, set[TerminalState]] = {
    TerminalState.IDLE: {TerminalState.DESTINATION_SELECTED},
    TerminalState.DESTINATION_SELECTED: {
        TerminalState.QUOTE_READY,
        TerminalState.DESTINATION_SELECTED,
        TerminalState.IDLE,
    },
    TerminalState.QUOTE_READY: {
        TerminalState.CONFIRMING,
        TerminalState.DESTINATION_SELECTED,
        TerminalState.IDLE,
    },
    TerminalState.CONFIRMING: {TerminalState.CONFIRMED, TerminalState.QUOTE_READY},
    TerminalState.CONFIRMED: {TerminalState.IDLE, TerminalState.DESTINATION_SELECTED},
}


@dataclass(frozen=True, slots=True)
class OperatorMessage:
    """Text shown to the driver. Persistent messages stay until the cause is resolved."""

    code: str
    text: str
    persistent: bool = False


def _message_for(error: FareEngineError) -> OperatorMessage:
    if isinstance(error, LocationUnavailable):
        return OperatorMessage("location_unavailable", "Current location unavailable", persistent=True)
    if isinstance(error, NotFoundError):
        return OperatorMessage("not_found", str(error))
    if isinstance(error, StoreUnavailable):
        return OperatorMessage("store_unavailable", "Fare service unreachable, please retry")
    return OperatorMessage("error", str(error))


class DriverTerminal:
    """One bus's fare terminal.

    Store and geolocation calls run in worker threads; while one is in flight
    every other action is refused with :class:`TerminalBusy`. Failures never
    escape: they become ``message`` for the operator and the terminal stays in
    its last stable state.
    """

    def __init__(
        self,
        bus_id: str,
        *,
        quotes: QuoteStore,
        tickets: TicketStore,
        destinations: DestinationCatalogue,
        locator: LocationResolver,
        channel: BroadcastChannel,
        driver_id: str | None = None,
        reset_delay: float = 5.0,
    ) -> None:
        self.bus_id = bus_id
        self.driver_id = driver_id
        self.quotes = quotes
        self.tickets = tickets
        self.destinations = destinations
        self.locator = locator
        self.channel = channel
        self.reset_delay = reset_delay

        self.state = TerminalState.IDLE
        self.destination: Destination | None = None
        self.location: Coordinate | None = None
        self.location_source: LocationSource | None = None
        self.quote: FareQuote | None = None
        self.ticket: Ticket | None = None
        self.message: OperatorMessage | None = None
        self._busy = False
        self._reset_handle: asyncio.TimerHandle | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    def _transition(self, new_state: TerminalState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise InvalidTransition(f"Invalid transition from {self.state.value} to {new_state.value}")
        logger.debug(f"Terminal {self.bus_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _require(self, *states: TerminalState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(f"Terminal {self.bus_id} is {self.state.value}; expected one of: {allowed}")

    @contextmanager
    def _operation(self) -> Iterator[None]:
        if self._busy:
            raise TerminalBusy(f"Terminal {self.bus_id} is still processing the previous action")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _report(self, error: FareEngineError) -> None:
        logger.warning(f"Terminal {self.bus_id}: {error}")
        self.message = _message_for(error)

    def dismiss_message(self) -> None:
        if self.message is not None and not self.message.persistent:
            self.message = None

    async def select_destination(self, destination_id: str, device_fix: DeviceFix | None = None) -> TerminalState:
        """Pick a destination and quote it. Allowed from any settled state."""
        with self._operation():
            self._cancel_auto_reset()
            try:
                resolved = await asyncio.to_thread(self.locator.resolve, self.bus_id, device_fix)
            except LocationUnavailable as error:
                self._report(error)
                self._resume_auto_reset()
                return self.state
            self.location = resolved.coordinate
            self.location_source = resolved.source
            if self.message is not None and self.message.code == "location_unavailable":
                self.message = None

            try:
                destination = await asyncio.to_thread(self.destinations.get, destination_id)
            except FareEngineError as error:
                self._report(error)
                self._resume_auto_reset()
                return self.state

            fare_on_display = self.quote is not None or self.ticket is not None
            self._transition(TerminalState.DESTINATION_SELECTED)
            self.destination = destination
            self.quote = None
            self.ticket = None
            self.message = None
            if not await self._request_quote() and fare_on_display:
                # The abandoned fare must not stay on the passenger display.
                self.channel.publish(FareReset())
            return self.state

    async def retry_quote(self) -> TerminalState:
        """Quote the selected destination again after a failed attempt."""
        with self._operation():
            self._require(TerminalState.DESTINATION_SELECTED)
            self.message = None
            await self._request_quote()
            return self.state

    async def _request_quote(self) -> bool:
        if self.destination is None or self.location is None:
            raise InvalidTransition(f"Terminal {self.bus_id} has no destination to quote")
        try:
            quote = await asyncio.to_thread(
                self.quotes.create_quote,
                self.location,
                self.destination.id,
                self.bus_id,
                self.driver_id,
            )
        except FareEngineError as error:
            self._report(error)
            return False
        self.quote = quote
        self._transition(TerminalState.QUOTE_READY)
        self.channel.publish(
            QuoteShown(fare=quote.fare, currency=quote.currency, destination_name=self.destination.name)
        )
        return True

    async def confirm(self) -> TerminalState:
        """Turn the current quote into a ticket."""
        with self._operation():
            self._require(TerminalState.QUOTE_READY)
            if self.quote is None or self.destination is None:
                raise InvalidTransition(f"Terminal {self.bus_id} has no quote to confirm")
            self._transition(TerminalState.CONFIRMING)
            self.message = None
            try:
                ticket = await asyncio.to_thread(
                    self.tickets.confirm_quote, self.quote.id, self.bus_id, self.driver_id
                )
            except FareEngineError as error:
                self._report(error)
                self._transition(TerminalState.QUOTE_READY)
                return self.state

            self.ticket = ticket
            self._transition(TerminalState.CONFIRMED)
            self.channel.publish(
                FareConfirmed(
                    fare=ticket.fare,
                    currency=ticket.currency,
                    ticket_id=ticket.id,
                    destination_name=self.destination.name,
                )
            )
            self._schedule_auto_reset()
            return self.state

    def cancel(self) -> TerminalState:
        """Abandon the current quote. The stored quote simply stays unconfirmed."""
        with self._operation():
            self._require(TerminalState.QUOTE_READY, TerminalState.DESTINATION_SELECTED)
            self._to_idle()
            return self.state

    def reset(self) -> TerminalState:
        """Return a confirmed terminal to idle for the next passenger."""
        with self._operation():
            self._require(TerminalState.CONFIRMED)
            self._to_idle()
            return self.state

    def _to_idle(self) -> None:
        self._cancel_auto_reset()
        self._transition(TerminalState.IDLE)
        self.destination = None
        self.quote = None
        self.ticket = None
        self.channel.publish(FareReset())

    def _schedule_auto_reset(self) -> None:
        self._cancel_auto_reset()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.reset_delay, self._auto_reset)

    def _resume_auto_reset(self) -> None:
        if self.state is TerminalState.CONFIRMED:
            self._schedule_auto_reset()

    def _cancel_auto_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _auto_reset(self) -> None:
        self._reset_handle = None
        if self.state is TerminalState.CONFIRMED and not self._busy:
            logger.debug(f"Terminal {self.bus_id}: auto reset after confirmation")
            self._to_idle()

    def close(self) -> None:
        self._cancel_auto_reset()
        self.channel.close()


class TerminalRegistry:
    """Keeps one terminal per bus for the HTTP surface."""

    def __init__(
        self,
        hub: BroadcastHub | None,
        *,
        quotes: QuoteStore | None = None,
        tickets: TicketStore | None = None,
        destinations: DestinationCatalogue | None = None,
        locator: LocationResolver | None = None,
        reset_delay: float | None = None,
    ) -> None:
        self.hub = hub
        self.destinations = destinations or DestinationCatalogue()
        self.quotes = quotes or QuoteStore(destinations=self.destinations)
        self.tickets = tickets or TicketStore(quotes=self.quotes)
        self.locator = locator or LocationResolver(default=default_coordinate())
        self.reset_delay = settings.confirmation_reset_seconds if reset_delay is None else reset_delay
        self._terminals: dict[str, DriverTerminal] = {}

    def get(self, bus_id: str, driver_id: str | None = None) -> DriverTerminal:
        terminal = self._terminals.get(bus_id)
        if terminal is None:
            terminal = DriverTerminal(
                bus_id,
                quotes=self.quotes,
                tickets=self.tickets,
                destinations=self.destinations,
                locator=self.locator,
                channel=open_channel(self.hub),
                driver_id=driver_id,
                reset_delay=self.reset_delay,
            )
            self._terminals[bus_id] = terminal
        elif driver_id and terminal.driver_id != driver_id:
            terminal.driver_id = driver_id
        return terminal

    def find(self, bus_id: str) -> DriverTerminal | None:
        """Existing terminal for ``bus_id``; lookups never open a new one."""
        return self._terminals.get(bus_id)

    def __contains__(self, bus_id: str) -> bool:
        return bus_id in self._terminals

    def close(self) -> None:
        for terminal in self._terminals.values():
            terminal.close()
        self._terminals.clear()
