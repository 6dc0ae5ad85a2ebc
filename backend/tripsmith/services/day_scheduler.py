"""Day scheduler — fills morning/afternoon/evening for every day without repeating a venue."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable

from tripsmith.errors import GenerationCancelled
from tripsmith.schemas.candidate import Candidate
from tripsmith.schemas.itinerary import Activity, DayPlan
from tripsmith.schemas.trip import TripRequest
from tripsmith.services.fallback_activities import FallbackActivityGenerator, fallback_generator
from tripsmith.services.planner_config import DEFAULT_ACTIVITY_COST, DEFAULT_CATEGORY_COST, SLOTS, SchedulerConfig
from tripsmith.services.slot_organizer import Buckets

logger = logging.getLogger(__name__)

DAY_THEMES = ["Arrival and First Impressions", "Deep Dive", "Hidden Corners", "Local Life", "Slow Day"]


@dataclass
class ScheduleResult:
    days: list[DayPlan] = field(default_factory=list)
    data_driven_count: int = 0
    fallback_count: int = 0


def default_cost(category: str) -> float:
    return DEFAULT_CATEGORY_COST.get(category, DEFAULT_ACTIVITY_COST)


def candidate_to_activity(candidate: Candidate, time: str, destination: str) -> Activity:
    why = None
    if candidate.mention_count:
        why = f"Mentioned {candidate.mention_count}x by travelers"
    elif candidate.rating:
        why = f"Rated {candidate.rating}/5"
    if candidate.enrichment and candidate.enrichment.insider_tip:
        why = f"{why}. {candidate.enrichment.insider_tip}" if why else candidate.enrichment.insider_tip

    return Activity(
        time=time,
        name=candidate.name,
        description=candidate.description,
        estimated_cost=candidate.estimated_cost if candidate.estimated_cost is not None else default_cost(candidate.category),
        category=candidate.category,
        location=candidate.address or destination,
        coordinates=candidate.coordinates,
        provenance=list(candidate.source_tags),
        why_recommended=why,
        confidence=candidate.confidence,
        mention_count=candidate.mention_count,
    )


class DayScheduler:
    def __init__(
        self,
        config: SchedulerConfig | None = None,
        fallback: FallbackActivityGenerator | None = None,
    ):
        self.config = config or SchedulerConfig()
        self._fallback = fallback or fallback_generator

    def schedule(
        self,
        request: TripRequest,
        buckets: Buckets,
        is_cancelled: Callable[[], bool] | None = None,
    ) -> ScheduleResult:
        """Build one DayPlan per trip day; every slot is filled, no name repeats.

        Buckets are read, never mutated. Raises GenerationCancelled when
        ``is_cancelled`` reports true at the start of a day.
        """
        used: set[str] = set()
        result = ScheduleResult()

        for day_index in range(request.trip_days):
            if is_cancelled is not None and is_cancelled():
                raise GenerationCancelled(f"cancelled before day {day_index + 1}")

            day_number = day_index + 1
            slots: dict[str, Activity] = {}
            for slot in SLOTS:
                time = self.config.slot_times[slot]
                candidate = self._select(buckets.get(slot, {}), slot, used)
                if candidate is not None:
                    activity = candidate_to_activity(candidate, time, request.destination)
                    result.data_driven_count += 1
                else:
                    activity = self._fallback.next_activity(
                        request.destination, slot, time, used, day_number
                    )
                    result.fallback_count += 1
                used.add(activity.name)
                slots[slot] = activity

            result.days.append(DayPlan(
                day_number=day_number,
                date=request.start_date + timedelta(days=day_index),
                title=self._day_title(day_number, request.trip_days, request.destination),
                **slots,
            ))

        logger.info(
            f"Scheduled {len(result.days)} days for {request.destination}: "
            f"{result.data_driven_count} from candidates, {result.fallback_count} fallback"
        )
        return result

    def _select(self, slot_buckets: dict[str, list[Candidate]], slot: str, used: set[str]) -> Candidate | None:
        for category in self.config.priorities(slot):
            for candidate in slot_buckets.get(category, []):
                if candidate.name not in used:
                    return candidate
        return None

    @staticmethod
    def _day_title(day_number: int, total_days: int, destination: str) -> str:
        if day_number == 1:
            return f"Day 1: {DAY_THEMES[0]} in {destination}"
        if day_number == total_days and total_days > 2:
            return f"Day {day_number}: Farewell to {destination}"
        theme = DAY_THEMES[1 + (day_number - 2) % (len(DAY_THEMES) - 1)]
        return f"Day {day_number}: {theme}"


day_scheduler = DayScheduler()
