"""Read-only access to the destination catalogue."""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import NotFoundError
from ..models.domain import Coordinate, Destination
from ..persistence.base import SupabaseStore, parse_coordinate
from ..services.geospatial import sort_by_proximity

logger = logging.getLogger(__name__)


def destination_from_row(row: dict) -> Destination:
    return Destination(
        id=str(row["id"]),
        name=str(row["name"]).strip(),
        coordinate=parse_coordinate(row, "latitude", "longitude"),
        address=(row.get("address") or "").strip() or None,
        zone=(row.get("zone") or "").strip() or None,
        is_active=bool(row.get("is_active", True)),
    )


def _matches(destination: Destination, term: str) -> bool:
    haystacks = (destination.name, destination.address or "", destination.zone or "")
    return any(term in value.lower() for value in haystacks)


def filter_destinations(destinations: Iterable[Destination], search: str | None) -> list[Destination]:
    """Case-insensitive substring match on name, address or zone."""
    term = (search or "").strip().lower()
    if not term:
        return list(destinations)
    return [destination for destination in destinations if _matches(destination, term)]


class DestinationCatalogue(SupabaseStore):
    """Destinations are maintained elsewhere; this catalogue only reads active rows."""

    def list_active(self, near: Coordinate | None = None) -> list[Destination]:
        """Active destinations ordered by name, or nearest first when ``near`` is given."""
        rows = self._execute(
            "list destinations",
            lambda client: client.table("destinations").select("*").eq("is_active", True).order("name"),
        )
        destinations: list[Destination] = []
        for row in rows:
            try:
                destinations.append(destination_from_row(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid destination row: {e}")
                continue

        if near is None:
            return destinations
        return [item for item, _ in sort_by_proximity(near, destinations, key=lambda d: d.coordinate)]

    def search(self, term: str | None, near: Coordinate | None = None) -> list[Destination]:
        return filter_destinations(self.list_active(near), term)

    def frequent(self, near: Coordinate | None = None, limit: int = 4) -> list[Destination]:
        """Shortlist shown as quick picks on the driver terminal."""
        return self.list_active(near)[:limit]

    def get(self, destination_id: str) -> Destination:
        rows = self._execute(
            "load destination",
            lambda client: client.table("destinations").select("*").eq("id", destination_id).limit(1),
        )
        if not rows:
            raise NotFoundError(f"Destination '{destination_id}' not found")
        try:
            destination = destination_from_row(rows[0])
        except (KeyError, ValueError, TypeError) as exc:
            raise NotFoundError(f"Destination '{destination_id}' is not usable: {exc}") from exc
        if not destination.is_active:
            raise NotFoundError(f"Destination '{destination_id}' is inactive")
        return destination
