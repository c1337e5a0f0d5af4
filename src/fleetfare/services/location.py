"""Fallback chain for the bus's current position: device fix, last known sample, home city."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from ..config import settings
from ..errors import LocationUnavailable, StoreUnavailable
from ..models.domain import Coordinate
from ..persistence.locations import LocationFeed

logger = logging.getLogger(__name__)

LocationSource = Literal["device", "last_known", "default"]


@dataclass(frozen=True, slots=True)
class DeviceFix:
    """A reading from the terminal's geolocation API."""

    coordinate: Coordinate
    speed_kmh: Optional[float] = None
    heading_degrees: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    coordinate: Coordinate
    source: LocationSource


def default_coordinate() -> Coordinate | None:
    if not settings.has_default_location:
        return None
    return Coordinate(latitude=settings.default_latitude, longitude=settings.default_longitude)


class LocationResolver:
    def __init__(self, feed: LocationFeed | None = None, default: Coordinate | None = None) -> None:
        self.feed = feed or LocationFeed()
        self.default = default

    def resolve(self, bus_id: str, device_fix: DeviceFix | None = None) -> ResolvedLocation:
        """Return a usable coordinate or raise LocationUnavailable.

        A missing ``device_fix`` covers both "no geolocation API" and "permission denied".
        """
        if device_fix is not None:
            try:
                self.feed.record_location(
                    bus_id,
                    device_fix.coordinate,
                    speed_kmh=device_fix.speed_kmh,
                    heading_degrees=device_fix.heading_degrees,
                )
            except StoreUnavailable as e:
                logger.warning(f"Could not record device location for {bus_id}: {e}")
            return ResolvedLocation(device_fix.coordinate, "device")

        try:
            last_known = self.feed.get_current_location(bus_id)
        except StoreUnavailable as e:
            logger.warning(f"Last known location lookup failed for {bus_id}: {e}")
            last_known = None
        if last_known is not None:
            return ResolvedLocation(last_known, "last_known")

        if self.default is not None:
            return ResolvedLocation(self.default, "default")

        raise LocationUnavailable(f"No location available for bus {bus_id}")
