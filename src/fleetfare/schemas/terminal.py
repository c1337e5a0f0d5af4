"""Driver terminal request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..services.location import DeviceFix
from ..services.terminal import DriverTerminal, TerminalState
from .fares import CoordinateModel, DestinationModel, QuoteModel, TicketModel
from .tracking import LocationReport


class SelectDestinationRequest(BaseModel):
    destination_id: str
    device_fix: Optional[LocationReport] = Field(
        default=None,
        description="Browser geolocation reading; omit when unavailable or denied.",
    )
    driver_id: Optional[str] = None

    def to_device_fix(self) -> DeviceFix | None:
        if self.device_fix is None:
            return None
        return DeviceFix(
            coordinate=self.device_fix.coordinate.to_domain(),
            speed_kmh=self.device_fix.speed_kmh,
            heading_degrees=self.device_fix.heading_degrees,
        )


class OperatorMessageModel(BaseModel):
    code: str
    text: str
    persistent: bool


class TerminalSnapshot(BaseModel):
    bus_id: str
    driver_id: Optional[str] = None
    state: str
    busy: bool
    location: Optional[CoordinateModel] = None
    location_source: Optional[str] = None
    destination: Optional[DestinationModel] = None
    quote: Optional[QuoteModel] = None
    ticket: Optional[TicketModel] = None
    message: Optional[OperatorMessageModel] = None

    @classmethod
    def idle(cls, bus_id: str) -> "TerminalSnapshot":
        """Snapshot for a bus whose terminal has not been opened yet."""
        return cls(bus_id=bus_id, state=TerminalState.IDLE.value, busy=False)

    @classmethod
    def from_terminal(cls, terminal: DriverTerminal) -> "TerminalSnapshot":
        message = terminal.message
        return cls(
            bus_id=terminal.bus_id,
            driver_id=terminal.driver_id,
            state=terminal.state.value,
            busy=terminal.busy,
            location=CoordinateModel.from_domain(terminal.location) if terminal.location else None,
            location_source=terminal.location_source,
            destination=DestinationModel.from_domain(terminal.destination) if terminal.destination else None,
            quote=QuoteModel.from_domain(terminal.quote) if terminal.quote else None,
            ticket=TicketModel.from_domain(terminal.ticket) if terminal.ticket else None,
            message=(
                OperatorMessageModel(code=message.code, text=message.text, persistent=message.persistent)
                if message
                else None
            ),
        )
