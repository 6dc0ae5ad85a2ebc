"""Itinerary assembler — orchestrates providers, scheduling and budgeting behind the cache."""

import asyncio
import logging
from typing import Callable

from pydantic import ValidationError

from tripsmith.errors import GenerationCancelled
from tripsmith.schemas.candidate import FlightOption, Hotel
from tripsmith.schemas.itinerary import BudgetSummary, Itinerary
from tripsmith.schemas.search import SearchCriteria
from tripsmith.schemas.trip import TripRequest
from tripsmith.services import budget_service
from tripsmith.services.cache_service import TTL_FLIGHTS, TTL_HOTELS, TTL_ITINERARY, CacheService, cache_service
from tripsmith.services.day_scheduler import DayScheduler
from tripsmith.services.planner_config import BudgetPolicy, planner_config
from tripsmith.services.providers.amadeus_client import AmadeusFlights, AmadeusHotels, amadeus_client
from tripsmith.services.providers.base import ProviderChain, ProviderResult
from tripsmith.services.providers.hotels_com_client import hotels_com_client
from tripsmith.services.providers.static_data import static_flights, static_hotels
from tripsmith.services.recommendation_service import RecommendationAggregator, build_default_aggregator
from tripsmith.services.slot_organizer import organize

logger = logging.getLogger(__name__)

MAX_HOTELS = 5
MAX_FLIGHTS = 5
BUDGET_FRIENDLY_COST = 30


class ItineraryService:
    """Generates itineraries; identical requests within the TTL are served from cache."""

    def __init__(
        self,
        aggregator: RecommendationAggregator,
        hotel_chain: ProviderChain | None = None,
        flight_chain: ProviderChain | None = None,
        scheduler: DayScheduler | None = None,
        cache: CacheService | None = None,
        budget_policy: BudgetPolicy | None = None,
    ):
        self._aggregator = aggregator
        self._hotel_chain = hotel_chain
        self._flight_chain = flight_chain
        self._scheduler = scheduler or DayScheduler()
        self._cache = cache or cache_service
        self._budget_policy = budget_policy or BudgetPolicy()

    async def generate(
        self,
        request: TripRequest,
        is_cancelled: Callable[[], bool] | None = None,
    ) -> Itinerary:
        """Return the itinerary for ``request``.

        Cache hit → stored itinerary, no provider calls. Any unexpected failure
        while building yields a minimal shell that is not cached. Cancellation
        propagates to the caller.
        """
        key = self._cache.itinerary_key(request.fingerprint())
        cached = await self._cache.get(key)
        if cached:
            try:
                itinerary = Itinerary.model_validate(cached)
                logger.info(f"Itinerary cache hit for {request.destination} ({itinerary.id})")
                return itinerary
            except ValidationError as e:
                logger.warning(f"Discarding unreadable cached itinerary: {e}")

        try:
            itinerary = await self._build(request, is_cancelled)
        except (GenerationCancelled, asyncio.CancelledError):
            logger.info(f"Generation for {request.destination} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Itinerary generation failed for {request.destination}: {e}")
            return self._fallback_shell(request)

        payload = itinerary.model_dump(mode="json")
        await self._cache.set(key, payload, TTL_ITINERARY)
        await self._cache.set(self._cache.itinerary_id_key(itinerary.id), payload, TTL_ITINERARY)
        return itinerary

    async def get(self, itinerary_id: str) -> Itinerary | None:
        cached = await self._cache.get(self._cache.itinerary_id_key(itinerary_id))
        if not cached:
            return None
        try:
            return Itinerary.model_validate(cached)
        except ValidationError as e:
            logger.warning(f"Stored itinerary {itinerary_id} unreadable: {e}")
            return None

    async def _build(self, request: TripRequest, is_cancelled: Callable[[], bool] | None) -> Itinerary:
        _check_cancelled(is_cancelled)

        criteria = SearchCriteria(
            destination=request.destination,
            start_date=request.start_date,
            end_date=request.end_date,
            traveler_count=request.traveler_count,
            origin=request.origin,
        )

        # Parallel fetch: candidates + hotels + flights; each branch degrades on its own
        branches = {"candidates": self._aggregator.recommend(request)}
        if self._hotel_chain is not None:
            branches["hotels"] = self._hotel_chain.search(criteria)
        if self._flight_chain is not None and request.origin:
            branches["flights"] = self._flight_chain.search(criteria)

        results = await asyncio.gather(*branches.values(), return_exceptions=True)
        outcome = {}
        for name, result in zip(branches, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"{name} branch failed for {request.destination}: {result}")
                result = None
            outcome[name] = result

        _check_cancelled(is_cancelled)

        candidates = outcome.get("candidates") or []
        hotel_result: ProviderResult | None = outcome.get("hotels")
        flight_result: ProviderResult | None = outcome.get("flights")

        buckets = organize(candidates)
        schedule = self._scheduler.schedule(request, buckets, is_cancelled)
        budget = budget_service.summarize(schedule.days, request, flight_result, self._budget_policy)

        hotels: list[Hotel] = hotel_result.items[:MAX_HOTELS] if hotel_result else []
        flights: list[FlightOption] = flight_result.items[:MAX_FLIGHTS] if flight_result else []

        return Itinerary(
            destination=request.destination,
            title=f"{request.trip_days}-Day {request.destination} Itinerary",
            overview=self._overview(request, schedule.data_driven_count > 0),
            start_date=request.start_date,
            end_date=request.end_date,
            traveler_count=request.traveler_count,
            days=schedule.days,
            budget_summary=budget,
            hotels=hotels,
            flights=flights,
            insider_tips=self._insider_tips(request, candidates),
            generated_by="data-driven" if schedule.data_driven_count > 0 else "fallback",
        )

    @staticmethod
    def _overview(request: TripRequest, data_driven: bool) -> str:
        basis = (
            "Built from venue listings and real traveler recommendations"
            if data_driven
            else "Built from our curated picks for the destination"
        )
        return (
            f"Experience the best of {request.destination} with this {request.trip_days}-day itinerary. "
            f"{basis}, it covers the highlights while keeping to your budget of "
            f"${request.total_budget:,.0f}."
        )

    @staticmethod
    def _insider_tips(request: TripRequest, candidates: list) -> list[str]:
        tips = [
            "Book popular attractions in advance to skip the lines.",
            f"Carry some local currency in {request.destination} for small vendors and markets.",
            "Download offline maps before you go.",
        ]
        cheap = next(
            (c for c in candidates if c.estimated_cost is not None and c.estimated_cost < BUDGET_FRIENDLY_COST),
            None,
        )
        if cheap is not None:
            tips.append(f"Budget-friendly pick: {cheap.name} costs about ${cheap.estimated_cost:.0f} per person.")
        return tips

    @staticmethod
    def _fallback_shell(request: TripRequest) -> Itinerary:
        return Itinerary(
            destination=request.destination,
            title=f"{request.destination} Trip",
            overview=f"A basic outline for your trip to {request.destination}.",
            start_date=request.start_date,
            end_date=request.end_date,
            traveler_count=request.traveler_count,
            days=[],
            budget_summary=BudgetSummary(total=request.total_budget),
            insider_tips=[
                "Live research was unavailable, so this plan is minimal. Please try again shortly."
            ],
            generated_by="fallback",
        )


def _check_cancelled(is_cancelled: Callable[[], bool] | None):
    if is_cancelled is not None and is_cancelled():
        raise GenerationCancelled("generation cancelled by caller")


def build_hotel_chain() -> ProviderChain:
    return ProviderChain(
        "hotels",
        [AmadeusHotels(amadeus_client), hotels_com_client],
        fallback=static_hotels,
        item_model=Hotel,
        cache=cache_service,
        cache_ttl=TTL_HOTELS,
    )


def build_flight_chain() -> ProviderChain:
    return ProviderChain(
        "flights",
        [AmadeusFlights(amadeus_client)],
        fallback=static_flights,
        item_model=FlightOption,
        cache=cache_service,
        cache_ttl=TTL_FLIGHTS,
    )


itinerary_service = ItineraryService(
    aggregator=build_default_aggregator(),
    hotel_chain=build_hotel_chain(),
    flight_chain=build_flight_chain(),
    scheduler=DayScheduler(planner_config.scheduler),
    cache=cache_service,
    budget_policy=planner_config.budget,
)
