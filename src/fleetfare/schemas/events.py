"""Fare lifecycle messages exchanged between the driver terminal and passenger displays."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_now)


class QuoteShown(_Event):
    """A fare has been priced and is waiting for the passenger."""

    type: Literal["quote_shown"] = "quote_shown"
    fare: int = Field(..., ge=0)
    currency: str
    destination_name: str


class FareConfirmed(_Event):
    """The fare was paid and a ticket issued."""

    type: Literal["confirmed"] = "confirmed"
    fare: int = Field(..., ge=0)
    currency: str
    ticket_id: str
    destination_name: str


class FareReset(_Event):
    type: Literal["reset"] = "reset"


FareLifecycleEvent = Annotated[
    Union[QuoteShown, FareConfirmed, FareReset],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[FareLifecycleEvent] = TypeAdapter(FareLifecycleEvent)


def parse_event(payload: dict[str, Any]) -> QuoteShown | FareConfirmed | FareReset:
    """Parse a JSON payload into the matching event variant."""
    return _event_adapter.validate_python(payload)
