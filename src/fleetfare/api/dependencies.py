"""Shared objects the routes pull from application state."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from ..data.destinations_repository import DestinationCatalogue
from ..persistence.locations import LocationFeed
from ..persistence.quotes import QuoteStore
from ..persistence.tickets import TicketStore
from ..services.broadcast import BroadcastHub
from ..services.terminal import TerminalRegistry


@dataclass
class FareStores:
    destinations: DestinationCatalogue
    quotes: QuoteStore
    tickets: TicketStore
    locations: LocationFeed

    @classmethod
    def from_client(cls, client=None) -> "FareStores":
        """Build every store on one client; ``None`` uses the configured Supabase client."""
        destinations = DestinationCatalogue(client)
        quotes = QuoteStore(client, destinations=destinations)
        return cls(
            destinations=destinations,
            quotes=quotes,
            tickets=TicketStore(client, quotes=quotes),
            locations=LocationFeed(client),
        )


def get_stores(request: Request) -> FareStores:
    """Retrieve the fare stores from app state."""
    return request.app.state.stores


def get_terminals(request: Request) -> TerminalRegistry:
    """Retrieve the driver terminal registry from app state."""
    return request.app.state.terminals


def get_hub(app) -> BroadcastHub | None:
    """Retrieve the broadcast hub; ``None`` means the notifier runs degraded."""
    return getattr(app.state, "hub", None)
