# ============================================================================
# LOCATION MODEL
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Geometry and timestamped location
# PURPOSE: Shared by platforms, permanent hosts and observations
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Location Model

A Location is a geometry plus the instant it became valid. Platforms keep
their last known location; observations may carry one.

Geometry is a structural GeoJSON-like object. Semantic checks (type
support, winding, self-intersection) live in core.geometry.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class Geometry(BaseModel):
    """GeoJSON-like geometry: {"type": ..., "coordinates": [...]}."""
    type: str
    coordinates: Any

    model_config = {"frozen": False}


class Location(BaseModel):
    """A geometry valid from `valid_at` onwards."""
    id: str = Field(default_factory=lambda: uuid4().hex)
    geometry: Geometry
    valid_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}

    @field_validator("valid_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_newer_than(self, other: Optional["Location"]) -> bool:
        return other is None or self.valid_at > other.valid_at


__all__ = ["Geometry", "Location"]
