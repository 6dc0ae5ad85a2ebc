"""Itinerary schemas — day plans, activities and the budget summary."""

import uuid
import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from tripsmith.schemas.candidate import Category, Coordinates, FlightOption, Hotel


class Activity(BaseModel):
    time: str
    name: str
    description: str = ""
    estimated_cost: float = Field(0, ge=0)
    category: Category
    location: str = ""
    coordinates: Coordinates | None = None
    provenance: list[str] = []
    why_recommended: str | None = None
    confidence: float | None = None
    mention_count: int = 0
    is_fallback: bool = False


class DayPlan(BaseModel):
    day_number: int
    date: dt.date
    title: str
    morning: Activity
    afternoon: Activity
    evening: Activity

    @property
    def activities(self) -> list[Activity]:
        return [self.morning, self.afternoon, self.evening]


class BudgetSummary(BaseModel):
    activities: float = 0
    food: float = 0
    transportation: float = 0
    accommodation: float = 0
    flights: float | None = None
    total: float


class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    destination: str
    title: str
    overview: str
    start_date: dt.date
    end_date: dt.date
    traveler_count: int
    days: list[DayPlan]
    budget_summary: BudgetSummary
    hotels: list[Hotel] = []
    flights: list[FlightOption] = []
    insider_tips: list[str] = []
    generated_by: Literal["data-driven", "fallback"]
    generated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
