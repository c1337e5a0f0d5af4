"""Fare quoting and confirmation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...errors import NotFoundError, StoreUnavailable
from ...models.domain import Coordinate
from ...schemas.fares import (
    ConfirmRequest,
    DestinationList,
    DestinationModel,
    QuoteModel,
    QuoteRequest,
    TicketModel,
)
from ...services.geospatial import haversine_km
from ..dependencies import FareStores, get_stores

router = APIRouter(prefix="/fares", tags=["fares"])

logger = logging.getLogger(__name__)


def _origin(lat: float | None, lng: float | None) -> Coordinate | None:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Both lat and lng are required to sort by proximity",
        )
    return Coordinate(latitude=lat, longitude=lng)


def _store_error(exc: StoreUnavailable) -> HTTPException:
    logger.warning(f"Fare store unavailable: {exc}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def _destination_list(destinations, origin: Coordinate | None) -> DestinationList:
    items = [
        DestinationModel.from_domain(
            destination,
            haversine_km(origin, destination.coordinate) if origin else None,
        )
        for destination in destinations
    ]
    return DestinationList(total=len(items), items=items)


@router.get("/destinations", response_model=DestinationList, status_code=status.HTTP_200_OK)
def list_destinations(
    lat: float | None = Query(default=None, ge=-90.0, le=90.0),
    lng: float | None = Query(default=None, ge=-180.0, le=180.0),
    q: str | None = Query(default=None, description="Filter by name, address or zone"),
    stores: FareStores = Depends(get_stores),
) -> DestinationList:
    """Active destinations, nearest first when an origin is given."""
    origin = _origin(lat, lng)
    try:
        destinations = stores.destinations.search(q, origin)
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc
    return _destination_list(destinations, origin)


@router.get("/destinations/frequent", response_model=DestinationList, status_code=status.HTTP_200_OK)
def frequent_destinations(
    lat: float | None = Query(default=None, ge=-90.0, le=90.0),
    lng: float | None = Query(default=None, ge=-180.0, le=180.0),
    limit: int = Query(default=settings.frequent_destinations, ge=1, le=20),
    stores: FareStores = Depends(get_stores),
) -> DestinationList:
    origin = _origin(lat, lng)
    try:
        destinations = stores.destinations.frequent(origin, limit=limit)
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc
    return _destination_list(destinations, origin)


@router.post("/quotes", response_model=QuoteModel, status_code=status.HTTP_201_CREATED)
def create_quote(payload: QuoteRequest, stores: FareStores = Depends(get_stores)) -> QuoteModel:
    try:
        quote = stores.quotes.create_quote(
            payload.origin.to_domain(),
            payload.destination_id,
            bus_id=payload.bus_id,
            driver_id=payload.driver_id,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc
    return QuoteModel.from_domain(quote)


@router.get("/quotes/{quote_id}", response_model=QuoteModel, status_code=status.HTTP_200_OK)
def get_quote(quote_id: str, stores: FareStores = Depends(get_stores)) -> QuoteModel:
    try:
        return QuoteModel.from_domain(stores.quotes.get_quote(quote_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc


@router.post("/quotes/{quote_id}/confirm", response_model=TicketModel, status_code=status.HTTP_200_OK)
def confirm_quote(
    quote_id: str,
    payload: ConfirmRequest | None = None,
    stores: FareStores = Depends(get_stores),
) -> TicketModel:
    """Confirm a quote. Repeating the call returns the ticket already issued."""
    payload = payload or ConfirmRequest()
    try:
        ticket = stores.tickets.confirm_quote(quote_id, bus_id=payload.bus_id, driver_id=payload.driver_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc
    return TicketModel.from_domain(ticket)


@router.get("/tickets/{ticket_id}", response_model=TicketModel, status_code=status.HTTP_200_OK)
def get_ticket(ticket_id: str, stores: FareStores = Depends(get_stores)) -> TicketModel:
    try:
        return TicketModel.from_domain(stores.tickets.get_ticket(ticket_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise _store_error(exc) from exc
