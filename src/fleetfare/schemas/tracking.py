"""Bus location schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import BusLocationSample
from .fares import CoordinateModel


class LocationReport(BaseModel):
    coordinate: CoordinateModel
    speed_kmh: Optional[float] = Field(default=None, ge=0.0)
    heading_degrees: Optional[float] = Field(default=None, ge=0.0, lt=360.0)


class LocationSampleModel(BaseModel):
    bus_id: str
    coordinate: CoordinateModel
    speed_kmh: float
    heading_degrees: float
    timestamp: datetime

    @classmethod
    def from_domain(cls, sample: BusLocationSample) -> "LocationSampleModel":
        return cls(
            bus_id=sample.bus_id,
            coordinate=CoordinateModel.from_domain(sample.coordinate),
            speed_kmh=sample.speed_kmh,
            heading_degrees=sample.heading_degrees,
            timestamp=sample.timestamp,
        )


class FleetLocations(BaseModel):
    total: int
    items: List[LocationSampleModel]
