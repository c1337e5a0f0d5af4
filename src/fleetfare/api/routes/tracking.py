"""Bus position endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...errors import StoreUnavailable
from ...schemas.fares import CoordinateModel
from ...schemas.tracking import FleetLocations, LocationReport, LocationSampleModel
from ..dependencies import FareStores, get_stores

router = APIRouter(prefix="/tracking", tags=["tracking"])

logger = logging.getLogger(__name__)


@router.post("/buses/{bus_id}/location", response_model=LocationSampleModel, status_code=status.HTTP_201_CREATED)
def record_location(bus_id: str, payload: LocationReport, stores: FareStores = Depends(get_stores)) -> LocationSampleModel:
    try:
        sample = stores.locations.record_location(
            bus_id,
            payload.coordinate.to_domain(),
            speed_kmh=payload.speed_kmh,
            heading_degrees=payload.heading_degrees,
        )
    except StoreUnavailable as exc:
        logger.warning(f"Failed to record location for {bus_id}: {exc}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return LocationSampleModel.from_domain(sample)


@router.get("/buses/{bus_id}/location", response_model=CoordinateModel, status_code=status.HTTP_200_OK)
def current_location(bus_id: str, stores: FareStores = Depends(get_stores)) -> CoordinateModel:
    try:
        coordinate = stores.locations.get_current_location(bus_id)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if coordinate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No location recorded for bus {bus_id}")
    return CoordinateModel.from_domain(coordinate)


@router.get("/buses", response_model=FleetLocations, status_code=status.HTTP_200_OK)
def fleet_locations(
    bus_id: list[str] | None = Query(default=None, description="Restrict to these buses"),
    stores: FareStores = Depends(get_stores),
) -> FleetLocations:
    """Newest known position of every bus; dashboards poll this."""
    try:
        samples = stores.locations.latest_samples(bus_id, window=settings.tracking_sample_window)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    items = [LocationSampleModel.from_domain(sample) for sample in samples]
    return FleetLocations(total=len(items), items=items)
