"""Distance-based fare pricing."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..config import settings
from ..models.domain import Coordinate, FareBreakdown
from .geospatial import haversine_km


@dataclass(frozen=True, slots=True)
class PricedRoute:
    fare: int
    breakdown: FareBreakdown
    distance_km: float
    eta_minutes: int


@dataclass(frozen=True, slots=True)
class FarePolicy:
    """Fixed rate table: a flat base fare plus a per-kilometre charge."""

    base_fare: int = 5000
    per_km_rate: int = 1500
    currency: str = "PYG"
    average_speed_kmh: float = 30.0

    @classmethod
    def from_settings(cls) -> "FarePolicy":
        return cls(
            base_fare=settings.base_fare,
            per_km_rate=settings.per_km_rate,
            currency=settings.currency,
            average_speed_kmh=settings.average_speed_kmh,
        )

    def price_distance(self, distance_km: float) -> PricedRoute:
        # Guaraní has no fractional unit; half units round up.
        fare = math.floor(self.base_fare + distance_km * self.per_km_rate + 0.5)
        eta_minutes = math.ceil(distance_km / self.average_speed_kmh * 60)
        breakdown = FareBreakdown(
            base=self.base_fare,
            per_km=self.per_km_rate,
            distance_km=round(distance_km, 2),
        )
        return PricedRoute(
            fare=int(fare),
            breakdown=breakdown,
            distance_km=distance_km,
            eta_minutes=int(eta_minutes),
        )

    def price_route(self, origin: Coordinate, destination: Coordinate) -> PricedRoute:
        """Price the great-circle trip between two coordinates."""
        return self.price_distance(haversine_km(origin, destination))
