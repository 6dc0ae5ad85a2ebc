"""Itinerary router — generate and fetch trip itineraries."""

import logging

from fastapi import APIRouter, HTTPException

from tripsmith.schemas.itinerary import Itinerary
from tripsmith.schemas.trip import TripRequest
from tripsmith.services.itinerary_service import itinerary_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=Itinerary)
async def generate_itinerary(req: TripRequest):
    """Generate (or return the cached) itinerary for a trip request."""
    logger.info(
        f"Itinerary requested: {req.destination} {req.start_date}→{req.end_date}, "
        f"{req.traveler_count} travelers, ${req.total_budget:,.0f}"
    )
    return await itinerary_service.generate(req)


@router.get("/{itinerary_id}", response_model=Itinerary)
async def get_itinerary(itinerary_id: str):
    itinerary = await itinerary_service.get(itinerary_id)
    if itinerary is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return itinerary
