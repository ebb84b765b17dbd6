"""Admin and platform statistics schemas."""

from pydantic import Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel


class BroadcastRequest(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)

    @field_validator("title", "message")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class BroadcastResponse(StrictModel):
    message: str
    timestamp: str


class PlatformStatsResponse(StrictModel):
    total_users: int
    total_customers: int
    total_providers: int
    active_users: int
