"""Planner configuration — single source for aggregation, scheduling and budget thresholds."""

from dataclasses import dataclass, field

from tripsmith.config import settings

SLOTS = ("morning", "afternoon", "evening")


@dataclass(frozen=True)
class AggregatorConfig:
    """Which recommendation sources run and how their output is trimmed."""
    enable_venue_search: bool = True
    enable_mention_mining: bool = True
    enable_enrichment: bool = True
    enrichment_timeout_seconds: float = 30.0
    max_candidates: int = 60
    max_activity_budget_share: float = 0.3   # of per-person budget, per activity
    interest_match_bonus: float = 0.25
    mention_bonus_per_count: float = 0.05
    mention_bonus_cap: float = 0.25


@dataclass(frozen=True)
class SchedulerConfig:
    """Category priority per slot and the canonical slot times."""
    morning: tuple[str, ...] = ("culture", "nature", "attraction", "shopping", "dining")
    afternoon: tuple[str, ...] = ("dining", "culture", "nature", "attraction", "shopping")
    evening: tuple[str, ...] = ("dining", "nightlife", "culture")
    slot_times: dict[str, str] = field(default_factory=lambda: {
        "morning": "09:00",
        "afternoon": "14:00",
        "evening": "19:00",
    })

    def priorities(self, slot: str) -> tuple[str, ...]:
        return getattr(self, slot)


@dataclass(frozen=True)
class BudgetPolicy:
    """Derived budget lines as ratios of activity spend / total budget."""
    food_ratio: float = 0.4              # × activity total
    transport_ratio: float = 0.2         # × activity total
    accommodation_share: float = 0.4     # × requested total budget


# Default cost per activity when a source gives no price (USD per person)
DEFAULT_CATEGORY_COST = {
    "dining": 35.0,
    "culture": 25.0,
    "attraction": 45.0,
    "nature": 30.0,
    "nightlife": 40.0,
    "shopping": 50.0,
}
DEFAULT_ACTIVITY_COST = 30.0


@dataclass(frozen=True)
class PlannerConfig:
    """Top-level config aggregating all sub-configs."""
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    budget: BudgetPolicy = field(default_factory=BudgetPolicy)


def config_from_settings() -> PlannerConfig:
    return PlannerConfig(
        aggregator=AggregatorConfig(
            enable_venue_search=bool(settings.google_places_api_key),
            enable_mention_mining=settings.reddit_enabled,
            enable_enrichment=settings.enrichment_enabled
            and bool(settings.openai_api_key or settings.anthropic_api_key),
            enrichment_timeout_seconds=settings.enrichment_timeout_seconds,
        ),
        budget=BudgetPolicy(
            food_ratio=settings.budget_food_ratio,
            transport_ratio=settings.budget_transport_ratio,
            accommodation_share=settings.budget_accommodation_share,
        ),
    )


planner_config = config_from_settings()
