"""Pydantic schemas for the admission status endpoint."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class SweeperStatus(BaseModel):
    """State of one background cleanup sweeper."""

    running: bool = Field(..., description="Whether the sweeper thread is alive.")
    interval_seconds: float = Field(..., description="Seconds between sweeps.")


class AdmissionStatus(BaseModel):
    """Snapshot of the rate limiter, response cache and sweepers."""

    rate_limiter: Dict[str, int] = Field(
        ..., description="Tracked windows and limiter configuration."
    )
    cache: Dict[str, int] = Field(
        ..., description="Entry count and hit/miss/expiration counters."
    )
    sweepers: Dict[str, SweeperStatus] = Field(
        default_factory=dict,
        description="Background sweepers keyed by name.",
    )
    generated_at: int = Field(
        ..., description="Epoch milliseconds when the snapshot was computed."
    )


class ApiResponse(BaseModel):
    """Success envelope shared by API routes."""

    success: bool = Field(True, description="Always true for successful responses.")
    data: Any = Field(None, description="Route payload.")
    message: str | None = Field(None, description="Optional human-readable note.")
