"""Trip request schema — the validated input of a generation run."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tripsmith.config import settings

MAX_TRAVELERS = 10


class TripRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: str
    start_date: date
    end_date: date
    traveler_count: int = Field(1, ge=1, le=MAX_TRAVELERS)
    total_budget: float = Field(gt=0)
    interest_categories: tuple[str, ...]
    origin: str | None = None
    special_requests: str | None = None

    @field_validator("destination")
    @classmethod
    def _destination_not_blank(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError("destination must not be blank")
        return v

    @field_validator("interest_categories")
    @classmethod
    def _normalize_interests(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = sorted({tag.strip().lower() for tag in v if tag and tag.strip()})
        if not cleaned:
            raise ValueError("at least one interest category is required")
        return tuple(cleaned)

    @field_validator("origin")
    @classmethod
    def _normalize_origin(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v.upper() if v else None

    @model_validator(mode="after")
    def _check_dates(self) -> "TripRequest":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if (self.end_date - self.start_date).days > settings.max_trip_days:
            raise ValueError(f"trips are limited to {settings.max_trip_days} days")
        return self

    @property
    def trip_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def budget_per_person(self) -> float:
        return self.total_budget / self.traveler_count

    def fingerprint(self) -> dict:
        """Canonical parameters identifying this request for caching."""
        return {
            "destination": self.destination.lower(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "traveler_count": self.traveler_count,
            "total_budget": round(self.total_budget, 2),
            "interest_categories": list(self.interest_categories),
            "origin": self.origin,
        }
