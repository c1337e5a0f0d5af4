"""Ticket store: turns a quote into a confirmed ticket."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from ..errors import NotFoundError, StoreUnavailable
from ..models.domain import FareQuote, Ticket
from .base import SupabaseStore, parse_coordinate, parse_timestamp, utc_now
from .quotes import QuoteStore

logger = logging.getLogger(__name__)

TICKET_STATUS_CONFIRMED = "confirmed"


def new_ticket_id() -> str:
    """Millisecond prefix keeps ids ordered by creation; the random suffix keeps them unique."""
    return f"tkt_{time.time_ns() // 1_000_000}_{uuid.uuid4().hex[:12]}"


def ticket_from_row(row: dict) -> Ticket:
    return Ticket(
        id=str(row["id"]),
        quote_id=str(row["quote_id"]),
        origin=parse_coordinate(row, "origin_lat", "origin_lng"),
        destination_id=str(row["destination_id"]),
        fare=int(row["fare"]),
        currency=str(row["currency"]),
        status=str(row["status"]),
        confirmed_at=parse_timestamp(row["confirmed_at"]),
        bus_id=row.get("bus_id"),
        driver_id=row.get("driver_id"),
    )


def ticket_to_row(ticket: Ticket) -> dict[str, Any]:
    return {
        "id": ticket.id,
        "quote_id": ticket.quote_id,
        "bus_id": ticket.bus_id,
        "driver_id": ticket.driver_id,
        "origin_lat": ticket.origin.latitude,
        "origin_lng": ticket.origin.longitude,
        "destination_id": ticket.destination_id,
        "fare": ticket.fare,
        "currency": ticket.currency,
        "status": ticket.status,
        "confirmed_at": ticket.confirmed_at.isoformat(),
    }


class TicketStore(SupabaseStore):
    def __init__(self, client=None, quotes: QuoteStore | None = None) -> None:
        super().__init__(client)
        self.quotes = quotes or QuoteStore(client)

    def _parse(self, row: dict) -> Ticket:
        try:
            return ticket_from_row(row)
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreUnavailable(f"Store returned a malformed ticket row: {exc}") from exc

    def find_ticket_for_quote(self, quote_id: str) -> Ticket | None:
        rows = self._execute(
            "look up ticket for quote",
            lambda client: client.table("tickets").select("*").eq("quote_id", quote_id).limit(1),
        )
        return self._parse(rows[0]) if rows else None

    def get_ticket(self, ticket_id: str) -> Ticket:
        rows = self._execute(
            "load ticket",
            lambda client: client.table("tickets").select("*").eq("id", ticket_id).limit(1),
        )
        if not rows:
            raise NotFoundError(f"Ticket '{ticket_id}' not found")
        return self._parse(rows[0])

    def confirm_quote(
        self,
        quote_id: str,
        bus_id: str | None = None,
        driver_id: str | None = None,
    ) -> Ticket:
        """Confirm a quote. A quote yields at most one ticket; confirming again returns it."""
        quote = self.quotes.get_quote(quote_id)

        existing = self.find_ticket_for_quote(quote.id)
        if existing is not None:
            logger.info(f"Quote {quote.id} already confirmed as {existing.id}")
            return existing

        ticket = self._ticket_for(quote, bus_id, driver_id)
        rows = self._execute(
            "confirm fare quote",
            lambda client: client.table("tickets").insert(ticket_to_row(ticket)),
        )
        logger.info(f"Ticket {ticket.id} confirmed from quote {quote.id}: {ticket.fare} {ticket.currency}")
        return self._parse(rows[0]) if rows else ticket

    @staticmethod
    def _ticket_for(quote: FareQuote, bus_id: str | None, driver_id: str | None) -> Ticket:
        # Monetary fields come from the quote as stored; the fare is never repriced.
        return Ticket(
            id=new_ticket_id(),
            quote_id=quote.id,
            origin=quote.origin,
            destination_id=quote.destination_id,
            fare=quote.fare,
            currency=quote.currency,
            status=TICKET_STATUS_CONFIRMED,
            confirmed_at=utc_now(),
            bus_id=bus_id or quote.bus_id,
            driver_id=driver_id or quote.driver_id,
        )
