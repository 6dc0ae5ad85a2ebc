from datetime import date

from pydantic import BaseModel, Field, model_validator


class SearchCriteria(BaseModel):
    """Provider-facing search parameters shared by every adapter."""
    destination: str = Field(min_length=1)
    start_date: date
    end_date: date
    traveler_count: int = Field(1, gt=0)
    origin: str | None = None
    categories: list[str] = []
    max_nightly_rate: float | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "SearchCriteria":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

    @property
    def nights(self) -> int:
        return max(1, (self.end_date - self.start_date).days)

    def cache_params(self) -> dict:
        return {
            "destination": self.destination.lower(),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "traveler_count": self.traveler_count,
            "origin": self.origin,
            "categories": sorted(self.categories) or None,
            "max_nightly_rate": self.max_nightly_rate,
        }
