"""Fare request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Coordinate, Destination, FareQuote, Ticket
from ..services.currency import format_amount


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)


class DestinationModel(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    zone: Optional[str] = None
    coordinate: CoordinateModel
    distance_km: Optional[float] = Field(default=None, description="Distance from the requested origin, if any.")

    @classmethod
    def from_domain(cls, destination: Destination, distance_km: float | None = None) -> "DestinationModel":
        return cls(
            id=destination.id,
            name=destination.name,
            address=destination.address,
            zone=destination.zone,
            coordinate=CoordinateModel.from_domain(destination.coordinate),
            distance_km=round(distance_km, 2) if distance_km is not None else None,
        )


class DestinationList(BaseModel):
    total: int
    items: List[DestinationModel]


class FareBreakdownModel(BaseModel):
    base: int
    per_km: int
    distance_km: float


class QuoteRequest(BaseModel):
    origin: CoordinateModel
    destination_id: str
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None


class QuoteModel(BaseModel):
    id: str
    origin: CoordinateModel
    destination_id: str
    fare: int
    fare_display: str
    currency: str
    breakdown: FareBreakdownModel
    distance_km: float
    eta_minutes: int
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, quote: FareQuote) -> "QuoteModel":
        return cls(
            id=quote.id,
            origin=CoordinateModel.from_domain(quote.origin),
            destination_id=quote.destination_id,
            fare=quote.fare,
            fare_display=format_amount(quote.fare, quote.currency),
            currency=quote.currency,
            breakdown=FareBreakdownModel(
                base=quote.breakdown.base,
                per_km=quote.breakdown.per_km,
                distance_km=quote.breakdown.distance_km,
            ),
            distance_km=quote.distance_km,
            eta_minutes=quote.eta_minutes,
            bus_id=quote.bus_id,
            driver_id=quote.driver_id,
            created_at=quote.created_at,
        )


class ConfirmRequest(BaseModel):
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None


class TicketModel(BaseModel):
    id: str
    quote_id: str
    origin: CoordinateModel
    destination_id: str
    fare: int
    fare_display: str
    currency: str
    status: str
    bus_id: Optional[str] = None
    driver_id: Optional[str] = None
    confirmed_at: datetime

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketModel":
        return cls(
            id=ticket.id,
            quote_id=ticket.quote_id,
            origin=CoordinateModel.from_domain(ticket.origin),
            destination_id=ticket.destination_id,
            fare=ticket.fare,
            fare_display=format_amount(ticket.fare, ticket.currency),
            currency=ticket.currency,
            status=ticket.status,
            bus_id=ticket.bus_id,
            driver_id=ticket.driver_id,
            confirmed_at=ticket.confirmed_at,
        )
