"""Schemas for provider discovery, availability and earnings."""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.constants import DAYS_OF_WEEK
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money, validate_hhmm
from .user import UserResponse


class ProviderListResponse(StrictModel):
    providers: List[UserResponse]
    total: int
    total_pages: int
    current_page: int


class ServiceTypesResponse(StrictModel):
    services: List[str]


class DayAvailability(BaseModel):
    """One weekday's working window."""

    available: bool = False
    start_time: str = "09:00"
    end_time: str = "18:00"

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _hhmm(cls, v: object) -> object:
        return validate_hhmm(v)

    @model_validator(mode="after")
    def _start_before_end(self) -> "DayAvailability":
        # Zero-padded HH:MM compares correctly as text
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityUpdateRequest(StrictRequestModel):
    """
    Full weekday map. Days left out reset to the default
    (unavailable, 09:00-18:00).
    """

    availability: Dict[str, DayAvailability] = Field(..., min_length=1)

    @field_validator("availability", mode="before")
    @classmethod
    def _known_days(cls, v: object) -> object:
        if not isinstance(v, dict):
            raise ValueError("availability must be an object keyed by weekday")
        normalized = {}
        for day, value in v.items():
            key = str(day).strip().lower()
            if key not in DAYS_OF_WEEK:
                raise ValueError(f"Invalid day: {day}")
            normalized[key] = value
        return normalized


class AvailabilityResponse(StrictModel):
    message: str
    availability: Dict[str, DayAvailability]


class EarningsResponse(StrictModel):
    total: Money
    this_month: Money
    pending: Money
