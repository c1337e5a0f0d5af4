"""Quote store: creates and reads immutable fare quotes."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from ..data.destinations_repository import DestinationCatalogue
from ..errors import NotFoundError, StoreUnavailable
from ..models.domain import Coordinate, FareBreakdown, FareQuote
from ..services.pricing import FarePolicy
from .base import SupabaseStore, parse_coordinate, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def quote_from_row(row: dict) -> FareQuote:
    breakdown = row.get("breakdown") or {}
    return FareQuote(
        id=str(row["id"]),
        origin=parse_coordinate(row, "origin_lat", "origin_lng"),
        destination_id=str(row["destination_id"]),
        fare=int(row["fare"]),
        currency=str(row["currency"]),
        breakdown=FareBreakdown(
            base=int(breakdown["base"]),
            per_km=int(breakdown["per_km"]),
            distance_km=float(breakdown["distance_km"]),
        ),
        distance_km=float(row["distance_km"]),
        eta_minutes=int(row["eta_minutes"]),
        created_at=parse_timestamp(row["created_at"]),
        bus_id=row.get("bus_id"),
        driver_id=row.get("driver_id"),
    )


def quote_to_row(quote: FareQuote) -> dict[str, Any]:
    return {
        "id": quote.id,
        "origin_lat": quote.origin.latitude,
        "origin_lng": quote.origin.longitude,
        "destination_id": quote.destination_id,
        "fare": quote.fare,
        "currency": quote.currency,
        "breakdown": {
            "base": quote.breakdown.base,
            "per_km": quote.breakdown.per_km,
            "distance_km": quote.breakdown.distance_km,
        },
        "distance_km": quote.distance_km,
        "eta_minutes": quote.eta_minutes,
        "bus_id": quote.bus_id,
        "driver_id": quote.driver_id,
        "created_at": quote.created_at.isoformat(),
    }


class QuoteStore(SupabaseStore):
    def __init__(
        self,
        client=None,
        destinations: DestinationCatalogue | None = None,
        policy: FarePolicy | None = None,
    ) -> None:
        super().__init__(client)
        self.destinations = destinations or DestinationCatalogue(client)
        self.policy = policy or FarePolicy.from_settings()

    def create_quote(
        self,
        origin: Coordinate,
        destination_id: str,
        bus_id: str | None = None,
        driver_id: str | None = None,
    ) -> FareQuote:
        """Price the trip to ``destination_id`` and persist a new quote.

        Raises:
            NotFoundError: the destination is unknown or inactive. Nothing is written.
            StoreUnavailable: the store could not be reached.
        """
        destination = self.destinations.get(destination_id)
        priced = self.policy.price_route(origin, destination.coordinate)

        quote = FareQuote(
            id=str(uuid.uuid4()),
            origin=origin,
            destination_id=destination.id,
            fare=priced.fare,
            currency=self.policy.currency,
            breakdown=priced.breakdown,
            distance_km=priced.distance_km,
            eta_minutes=priced.eta_minutes,
            created_at=utc_now(),
            bus_id=bus_id,
            driver_id=driver_id,
        )
        rows = self._execute(
            "create fare quote",
            lambda client: client.table("fare_quotes").insert(quote_to_row(quote)),
        )
        logger.info(
            f"Quote {quote.id} created for destination {destination.id}: "
            f"{quote.fare} {quote.currency} over {quote.breakdown.distance_km} km"
        )
        if not rows:
            return quote
        try:
            return quote_from_row(rows[0])
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreUnavailable(f"Store returned a malformed quote row: {exc}") from exc

    def get_quote(self, quote_id: str) -> FareQuote:
        rows = self._execute(
            "load fare quote",
            lambda client: client.table("fare_quotes").select("*").eq("id", quote_id).limit(1),
        )
        if not rows:
            raise NotFoundError(f"Quote '{quote_id}' not found")
        try:
            return quote_from_row(rows[0])
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreUnavailable(f"Store returned a malformed quote row: {exc}") from exc
