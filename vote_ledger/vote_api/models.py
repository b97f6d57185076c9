"""Pydantic models for request/response validation."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..shared import VoteRecord


class VoteRequest(BaseModel):
    """Vote submission request model.

    Emptiness is checked by the vote service, not here, so that the HTTP
    layer and direct callers get the same errors.
    """

    email: str = Field(..., description="Email or phone identifying the voter")
    password: str = Field(..., description="Account password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "juan@example.com",
                "password": "hunter2"
            }
        }
    )


class VoteItem(BaseModel):
    """A recorded vote as listed by GET /api/votes."""

    email: str = Field(..., description="Identity as submitted by the voter")
    timestamp: datetime = Field(..., description="Acceptance time (UTC)")

    @classmethod
    def from_record(cls, record: VoteRecord) -> "VoteItem":
        return cls.model_validate(record.to_wire())


class VoteResponse(BaseModel):
    """Vote submission response model."""

    status: str = Field(default="recorded", description="Status of the submission")
    message: str = Field(default="Thank you for voting", description="Response message")
    email: str = Field(..., description="Identity as submitted by the voter")
    timestamp: datetime = Field(..., description="Acceptance time (UTC)")
    refresh: bool = Field(default=True, description="Client should re-fetch the vote list")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "recorded",
                "message": "Thank you for voting",
                "email": "juan@example.com",
                "timestamp": "2025-01-15T10:30:00+00:00",
                "refresh": True
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Overall health status")
    services: dict = Field(..., description="Status of individual backends")
    timestamp: datetime = Field(..., description="Health check timestamp")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict = Field(default_factory=dict, description="Additional error details")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "AlreadyVotedError",
                "message": "You have already voted",
                "details": {}
            }
        }
    )
