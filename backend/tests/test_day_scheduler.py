from datetime import date

import pytest

from conftest import make_candidate, make_request
from tripsmith.errors import GenerationCancelled
from tripsmith.services.day_scheduler import DayScheduler
from tripsmith.services.fallback_activities import FallbackActivityGenerator
from tripsmith.services.slot_organizer import organize


def _all_names(result):
    return [a.name for day in result.days for a in day.activities]


def test_every_slot_filled_without_candidates():
    request = make_request(destination="Lisbon", start_date=date(2026, 3, 1), end_date=date(2026, 3, 5))
    result = DayScheduler().schedule(request, organize([]))

    assert len(result.days) == 4
    for day in result.days:
        assert day.morning.time == "09:00"
        assert day.afternoon.time == "14:00"
        assert day.evening.time == "19:00"
    assert result.data_driven_count == 0
    assert result.fallback_count == 12


def test_no_name_repeats_with_shared_dining_buckets():
    candidates = [
        make_candidate("Bistrot Paul Bert", "dining"),
        make_candidate("Septime", "dining"),
        make_candidate("Louvre", "culture"),
        make_candidate("Orsay", "culture"),
    ]
    request = make_request(start_date=date(2026, 6, 1), end_date=date(2026, 6, 4))
    result = DayScheduler().schedule(request, organize(candidates))

    names = _all_names(result)
    assert len(names) == len(set(names)) == 9
    # dining sits in both afternoon and evening buckets but is only used once
    assert names.count("Bistrot Paul Bert") == 1
    assert names.count("Septime") == 1


def test_slot_priority_order_is_respected():
    candidates = [
        make_candidate("Père Lachaise", "culture"),
        make_candidate("Chez Janou", "dining"),
        make_candidate("Le Syndicat", "nightlife"),
    ]
    request = make_request(start_date=date(2026, 6, 1), end_date=date(2026, 6, 2))
    day = DayScheduler().schedule(request, organize(candidates)).days[0]

    assert day.morning.name == "Père Lachaise"
    assert day.afternoon.name == "Chez Janou"
    assert day.evening.name == "Le Syndicat"


def test_candidate_activity_keeps_provenance_and_default_cost():
    candidates = [make_candidate("Louvre", "culture", source_tags=["google_places", "reddit"], mention_count=4)]
    request = make_request(start_date=date(2026, 6, 1), end_date=date(2026, 6, 2))
    morning = DayScheduler().schedule(request, organize(candidates)).days[0].morning

    assert morning.provenance == ["google_places", "reddit"]
    assert morning.estimated_cost == 25
    assert morning.mention_count == 4
    assert morning.is_fallback is False


def test_long_trip_never_repeats_names():
    request = make_request(destination="Paris", start_date=date(2026, 7, 1), end_date=date(2026, 7, 31))
    result = DayScheduler().schedule(request, organize([make_candidate("Louvre Museum", "culture")]))

    names = _all_names(result)
    assert len(result.days) == 30
    assert len(names) == 90
    assert len(set(names)) == 90


def test_days_are_dated_consecutively():
    request = make_request(start_date=date(2026, 12, 30), end_date=date(2027, 1, 2))
    result = DayScheduler().schedule(request, organize([]))
    assert [d.date for d in result.days] == [date(2026, 12, 30), date(2026, 12, 31), date(2027, 1, 1)]
    assert [d.day_number for d in result.days] == [1, 2, 3]


def test_cancellation_checked_at_day_boundary():
    request = make_request(start_date=date(2026, 6, 1), end_date=date(2026, 6, 5))
    checks = []

    def is_cancelled():
        checks.append(1)
        return len(checks) > 2

    with pytest.raises(GenerationCancelled):
        DayScheduler().schedule(request, organize([]), is_cancelled=is_cancelled)
    assert len(checks) == 3


def test_scheduler_does_not_mutate_buckets():
    buckets = organize([make_candidate("Louvre", "culture"), make_candidate("Septime", "dining")])
    before = {slot: {cat: list(items) for cat, items in cats.items()} for slot, cats in buckets.items()}
    DayScheduler().schedule(make_request(), buckets)
    assert buckets == before


class TestFallbackGenerator:
    def test_destination_table_is_used_first(self):
        activity = FallbackActivityGenerator().next_activity("Paris, France", "morning", "09:00", set(), 1)
        assert activity.name == "Louvre Museum"
        assert activity.is_fallback is True
        assert activity.provenance == ["fallback"]
        assert activity.coordinates is not None

    def test_skips_used_names(self):
        gen = FallbackActivityGenerator()
        activity = gen.next_activity("Paris", "morning", "09:00", {"Louvre Museum"}, 1)
        assert activity.name == "Musée d'Orsay"

    def test_unknown_destination_uses_generic_table(self):
        activity = FallbackActivityGenerator().next_activity("Reykjavik", "evening", "19:00", set(), 1)
        assert activity.name == "Cultural Experience"
        assert "Reykjavik" in activity.description
        assert activity.coordinates is None

    def test_exhausted_tables_synthesize_unique_names(self):
        gen = FallbackActivityGenerator()
        used = {o.name for o in gen.options_for("Reykjavik", "afternoon")}
        first = gen.next_activity("Reykjavik", "afternoon", "14:00", used, 7)
        used.add(first.name)
        second = gen.next_activity("Reykjavik", "afternoon", "14:00", used, 7)

        assert first.name == "Local Cuisine Experience (day 7)"
        assert second.name != first.name
        assert second.name not in used
