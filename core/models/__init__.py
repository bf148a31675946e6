# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the sensor context service.
Models define SQL metadata via __sql_* ClassVar attributes for DDL generation.

Single Source of Truth Pattern:
    - Pydantic models define structure
    - PydanticToSQL reads __sql_* metadata
    - PostgreSQL schema generated from models
"""

from core.models.location import Geometry, Location
from core.models.sensor import Sensor, SensorConfig, SENSOR_UPDATABLE_FIELDS
from core.models.platform import Platform, PLATFORM_UPDATABLE_FIELDS
from core.models.context import Context, ContextToAdd, ComplexField, FieldRule
from core.models.permanent_host import PermanentHost
from core.models.deployment import Deployment, VocabularyEntity
from core.models.observation import Observation, ObservationResult, UnknownSensor

# Models that own a table, in creation order
TABLE_MODELS = [
    Deployment,
    VocabularyEntity,
    PermanentHost,
    Platform,
    Sensor,
    Context,
    UnknownSensor,
]

__all__ = [
    # Location
    "Geometry",
    "Location",
    # Sensor
    "Sensor",
    "SensorConfig",
    "SENSOR_UPDATABLE_FIELDS",
    # Platform
    "Platform",
    "PLATFORM_UPDATABLE_FIELDS",
    # Context
    "Context",
    "ContextToAdd",
    "ComplexField",
    "FieldRule",
    # Collaborators
    "PermanentHost",
    "Deployment",
    "VocabularyEntity",
    # Observations
    "Observation",
    "ObservationResult",
    "UnknownSensor",
    "TABLE_MODELS",
]
