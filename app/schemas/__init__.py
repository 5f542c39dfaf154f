"""Pydantic response schemas for the API."""

from app.schemas.health import HealthResponse, ReadinessResponse

__all__ = [
    "HealthResponse",
    "ReadinessResponse",
]
