from datetime import date

import pytest

from tripsmith.errors import ProviderUnavailable
from tripsmith.schemas.candidate import Candidate
from tripsmith.schemas.trip import TripRequest
from tripsmith.services.cache_service import CacheService, MemoryBackend


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeSource:
    """Provider stand-in that counts calls and returns canned items or raises."""

    def __init__(self, name: str, items=None, error: Exception | None = None):
        self.name = name
        self.items = list(items or [])
        self.error = error
        self.calls = 0

    async def search(self, criteria):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


def failing_source(name: str) -> FakeSource:
    return FakeSource(name, error=ProviderUnavailable(name, "down"))


def make_candidate(name: str, category: str = "culture", **kwargs) -> Candidate:
    kwargs.setdefault("confidence", 0.6)
    kwargs.setdefault("source_tags", ["test"])
    return Candidate(name=name, category=category, **kwargs)


def make_request(**overrides) -> TripRequest:
    data = {
        "destination": "Paris",
        "start_date": date(2026, 6, 1),
        "end_date": date(2026, 6, 3),
        "traveler_count": 2,
        "total_budget": 3000,
        "interest_categories": ["culture", "food"],
    }
    data.update(overrides)
    return TripRequest(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheService(MemoryBackend(), clock=clock)


@pytest.fixture
def trip_request():
    return make_request()
