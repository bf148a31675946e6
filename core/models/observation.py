# ============================================================================
# OBSERVATION & UNKNOWN SENSOR MODELS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Raw and enriched observations
# PURPOSE: Observation shape consumed by the enricher, and the marker kept
#          for sensors that report without any known context
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Observation Models

An incoming observation carries little more than made_by_sensor, a
result_time and has_result. Enrichment fills the context fields in;
anything the observation already carries is kept as sent.

Extra keys are allowed and passed through untouched.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.models.location import Location


class ObservationResult(BaseModel):
    """The measured value and its unit."""
    value: Any = None
    unit: Optional[str] = None
    flags: Optional[List[str]] = None

    model_config = {"frozen": False, "extra": "allow"}


class Observation(BaseModel):
    """An observation, raw or enriched."""
    id: Optional[str] = None
    made_by_sensor: Optional[str] = None
    result_time: Optional[datetime] = None
    has_result: Optional[ObservationResult] = None

    # Context fields
    in_deployments: Optional[List[str]] = None
    hosted_by_path: Optional[List[str]] = None
    observed_property: Optional[str] = None
    has_feature_of_interest: Optional[str] = None
    used_procedures: Optional[List[str]] = None
    disciplines: Optional[List[str]] = None

    location: Optional[Location] = None

    model_config = {"frozen": False, "extra": "allow"}

    @field_validator("result_time")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_document(self) -> Dict[str, Any]:
        """Plain dict form, without unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


class UnknownSensor(BaseModel):
    """
    A sensor id seen on observations with no matching context.

    Maps to: sensorctx.unknown_sensors
    """

    __sql_table__: ClassVar[str] = "unknown_sensors"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = [
        {"name": "idx_unknown_sensors_n_observations", "columns": ["n_observations"], "descending": True},
    ]

    id: str = Field(..., min_length=1, max_length=200)
    n_observations: int = 1
    last_observation: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}


__all__ = ["Observation", "ObservationResult", "UnknownSensor"]
