from datetime import date

import pytest

from conftest import make_request
from tripsmith.schemas.candidate import FlightOption
from tripsmith.schemas.itinerary import Activity, DayPlan
from tripsmith.services.budget_service import summarize
from tripsmith.services.planner_config import BudgetPolicy
from tripsmith.services.providers.base import ProviderResult


def _activity(name: str, cost: float, time: str = "09:00") -> Activity:
    return Activity(time=time, name=name, estimated_cost=cost, category="culture")


def _day(n: int, costs: tuple[float, float, float]) -> DayPlan:
    return DayPlan(
        day_number=n,
        date=date(2026, 6, n),
        title=f"Day {n}",
        morning=_activity(f"m{n}", costs[0]),
        afternoon=_activity(f"a{n}", costs[1], "14:00"),
        evening=_activity(f"e{n}", costs[2], "19:00"),
    )


def _flight(price: float, source: str = "amadeus") -> FlightOption:
    return FlightOption(
        airline_code="AF", airline_name="Air France", flight_numbers="AF1",
        origin_airport="JFK", destination_airport="CDG", price=price, source=source,
    )


def test_ratios_applied_to_activity_total():
    days = [_day(1, (20, 30, 50)), _day(2, (0, 40, 60))]
    summary = summarize(days, make_request(total_budget=2000))

    assert summary.activities == 200
    assert summary.food == 80
    assert summary.transportation == 40
    assert summary.accommodation == 800
    assert summary.flights is None
    assert summary.total == 1120


def test_total_equals_sum_of_parts():
    days = [_day(1, (13.5, 27.25, 41)), _day(2, (9.99, 0, 33.3))]
    summary = summarize(days, make_request(total_budget=1234))
    parts = summary.activities + summary.food + summary.transportation + summary.accommodation
    assert summary.total == pytest.approx(parts, abs=0.01)


def test_custom_policy():
    policy = BudgetPolicy(food_ratio=0.5, transport_ratio=0.1, accommodation_share=0.25)
    summary = summarize([_day(1, (100, 0, 0))], make_request(total_budget=1000), policy=policy)
    assert (summary.food, summary.transportation, summary.accommodation) == (50, 10, 250)


def test_live_flights_use_cheapest_offer():
    flights = ProviderResult(items=[_flight(900), _flight(640)], source="amadeus")
    summary = summarize([_day(1, (10, 10, 10))], make_request(total_budget=3000), flights=flights)
    assert summary.flights == 640
    assert summary.total == 30 + 12 + 6 + 1200 + 640


def test_fallback_flights_are_not_counted():
    flights = ProviderResult(items=[_flight(1296, "static_flights")], source="static_flights", is_fallback=True)
    summary = summarize([_day(1, (10, 10, 10))], make_request(), flights=flights)
    assert summary.flights is None


def test_total_may_exceed_requested_budget():
    days = [_day(1, (500, 500, 500))]
    summary = summarize(days, make_request(total_budget=500))
    assert summary.total > 500


def test_half_amounts_round_up():
    # 12.5 of activities: transport 2.5 -> 3; budget 1001.25 * 0.4 = 400.5 -> 401
    summary = summarize([_day(1, (5, 5, 2.5))], make_request(total_budget=1001.25))
    assert summary.activities == 12.5
    assert summary.food == 5
    assert summary.transportation == 3
    assert summary.accommodation == 401
    assert summary.total == 421.5
