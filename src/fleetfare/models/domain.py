"""Domain models for destinations, quotes, tickets and bus positions."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point. Range checks happen at the API boundary."""

    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Destination:
    """Named point of interest a passenger can travel to."""

    id: str
    name: str
    coordinate: Coordinate
    address: Optional[str] = None
    zone: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class FareBreakdown:
    base: int
    per_km: int
    distance_km: float


@dataclass(frozen=True, slots=True)
class FareQuote:
    """Priced, not yet paid fare. Never mutated once persisted."""

    id: str
    origin: Coordinate
    destination_id: str
    fare: int
    currency: str
    breakdown: FareBreakdown
    distance_km: float
    eta_minutes: int
    created_at: datetime
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Ticket:
    """Confirmed fare derived from exactly one quote."""

    id: str
    quote_id: str
    origin: Coordinate
    destination_id: str
    fare: int
    currency: str
    status: str
    confirmed_at: datetime
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BusLocationSample:
    bus_id: str
    coordinate: Coordinate
    speed_kmh: float
    heading_degrees: float
    timestamp: datetime
