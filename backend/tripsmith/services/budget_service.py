"""Budget aggregator — derives the itinerary's cost breakdown from scheduled activities."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from tripsmith.schemas.itinerary import BudgetSummary, DayPlan
from tripsmith.schemas.trip import TripRequest
from tripsmith.services.planner_config import BudgetPolicy
from tripsmith.services.providers.base import ProviderResult

logger = logging.getLogger(__name__)


def _round_half_up(value, places: int = 0) -> float:
    """Halves round away from zero (12.5 -> 13), unlike round()."""
    exponent = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def _share(amount: float, ratio: float) -> float:
    return _round_half_up(Decimal(str(amount)) * Decimal(str(ratio)))


def summarize(
    days: list[DayPlan],
    request: TripRequest,
    flights: ProviderResult | None = None,
    policy: BudgetPolicy | None = None,
) -> BudgetSummary:
    """Activity total plus ratio-derived food, transport and accommodation lines.

    Flights count only when a live search returned offers; the cheapest one is
    used. Accommodation is a share of the requested budget and is not
    reconciled against quoted hotel rates.
    """
    policy = policy or BudgetPolicy()

    activities = _round_half_up(sum(Decimal(str(a.estimated_cost)) for day in days for a in day.activities), 2)
    food = _share(activities, policy.food_ratio)
    transportation = _share(activities, policy.transport_ratio)
    accommodation = _share(request.total_budget, policy.accommodation_share)

    flight_cost = None
    if flights is not None and flights.items and not flights.is_fallback:
        flight_cost = _round_half_up(min(f.price for f in flights.items), 2)

    total = _round_half_up(
        sum(Decimal(str(v)) for v in (activities, food, transportation, accommodation, flight_cost or 0)), 2
    )
    if total > request.total_budget:
        logger.info(f"Estimated total ${total:.0f} exceeds requested budget ${request.total_budget:.0f}")

    return BudgetSummary(
        activities=activities,
        food=food,
        transportation=transportation,
        accommodation=accommodation,
        flights=flight_cost,
        total=total,
    )
