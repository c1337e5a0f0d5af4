"""Location feed: append-only bus position samples."""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import StoreUnavailable
from ..models.domain import BusLocationSample, Coordinate
from .base import SupabaseStore, parse_coordinate, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def sample_from_row(row: dict) -> BusLocationSample:
    return BusLocationSample(
        bus_id=str(row["bus_id"]),
        coordinate=parse_coordinate(row, "latitude", "longitude"),
        speed_kmh=float(row.get("speed") or 0),
        heading_degrees=float(row.get("heading") or 0),
        timestamp=parse_timestamp(row["timestamp"]),
    )


class LocationFeed(SupabaseStore):
    def record_location(
        self,
        bus_id: str,
        coordinate: Coordinate,
        speed_kmh: float | None = None,
        heading_degrees: float | None = None,
    ) -> BusLocationSample:
        """Append a sample. Raises StoreUnavailable if the store cannot be reached."""
        sample = BusLocationSample(
            bus_id=bus_id,
            coordinate=coordinate,
            speed_kmh=float(speed_kmh or 0),
            heading_degrees=float(heading_degrees or 0),
            timestamp=utc_now(),
        )
        self._execute(
            "record bus location",
            lambda client: client.table("bus_locations").insert(
                {
                    "bus_id": sample.bus_id,
                    "latitude": coordinate.latitude,
                    "longitude": coordinate.longitude,
                    "speed": sample.speed_kmh,
                    "heading": sample.heading_degrees,
                    "timestamp": sample.timestamp.isoformat(),
                }
            ),
        )
        return sample

    def get_current_location(self, bus_id: str) -> Coordinate | None:
        rows = self._execute(
            "load current bus location",
            lambda client: client.table("bus_locations")
            .select("latitude, longitude")
            .eq("bus_id", bus_id)
            .order("timestamp", desc=True)
            .limit(1),
        )
        if not rows:
            return None
        try:
            return parse_coordinate(rows[0], "latitude", "longitude")
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreUnavailable(f"Store returned a malformed location row for bus {bus_id}: {exc}") from exc

    def latest_samples(self, bus_ids: Iterable[str] | None = None, window: int = 500) -> list[BusLocationSample]:
        """Newest sample per bus among the most recent ``window`` rows, newest first."""

        def build(client):
            query = client.table("bus_locations").select("*")
            if bus_ids:
                query = query.in_("bus_id", list(bus_ids))
            return query.order("timestamp", desc=True).limit(window)

        latest: dict[str, BusLocationSample] = {}
        for row in self._execute("list bus locations", build):
            try:
                sample = sample_from_row(row)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid bus location row: {e}")
                continue
            current = latest.get(sample.bus_id)
            if current is None or sample.timestamp > current.timestamp:
                latest[sample.bus_id] = sample
        return sorted(latest.values(), key=lambda s: s.timestamp, reverse=True)
