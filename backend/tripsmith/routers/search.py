"""Search router — direct hotel and flight lookups through the provider chains."""

import logging

from fastapi import APIRouter, HTTPException

from tripsmith.errors import ProviderUnavailable
from tripsmith.schemas.search import SearchCriteria
from tripsmith.services.itinerary_service import build_flight_chain, build_hotel_chain

logger = logging.getLogger(__name__)

router = APIRouter()

hotel_chain = build_hotel_chain()
flight_chain = build_flight_chain()


@router.post("/hotels")
async def search_hotels(criteria: SearchCriteria):
    """Hotels for a destination and date range; flagged when static data was used."""
    try:
        result = await hotel_chain.search(criteria)
    except ProviderUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return result.to_dict()


@router.post("/flights")
async def search_flights(criteria: SearchCriteria):
    if not criteria.origin:
        raise HTTPException(status_code=400, detail="origin is required for flight search")
    try:
        result = await flight_chain.search(criteria)
    except ProviderUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return result.to_dict()
