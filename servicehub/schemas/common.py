"""
Response models for main application endpoints.

These models ensure consistent API responses for root, health check
and simple acknowledgement endpoints.
"""

from typing import Dict

from pydantic import Field

from ._strict_base import StrictModel


class RootResponse(StrictModel):
    """Response for root endpoint."""

    message: str = Field(description="Welcome message")
    version: str = Field(description="API version")
    docs: str = Field(description="Documentation URL")
    environment: str = Field(description="Environment name")
    endpoints: Dict[str, str] = Field(description="Main endpoint groups")


class HealthResponse(StrictModel):
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Environment name")
    timestamp: str = Field(description="UTC ISO8601 timestamp of the health response")


class MessageResponse(StrictModel):
    """Plain acknowledgement."""

    message: str
