# src/mixsched/api/schemas.py
"""
Pydantic response schemas for the service endpoints.
The admission endpoint itself speaks the AdmissionReview models.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response schema for the liveness endpoint."""

    status: str = Field(..., description="Health status of the webhook.")
    version: str = Field(..., description="Current application version.")


class ReadinessResponse(BaseModel):
    """Response schema for the readiness endpoint."""

    status: str = Field(..., description="Readiness status of the webhook.")
    cache_synced: bool = Field(..., description="True once reads are served from the in-memory cache.")


class ErrorResponse(BaseModel):
    """Body returned when the request envelope itself cannot be decoded."""

    err: str
