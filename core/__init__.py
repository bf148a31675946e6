# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import EntityStatus, VocabularyKind, ConfigField, HostedEntityType
from core.errors import (
    OperationalError,
    ValidationError,
    Forbidden,
    NotFound,
    Conflict,
    StoreFailure,
)
from core.models import (
    Sensor,
    SensorConfig,
    Platform,
    Location,
    Context,
    ContextToAdd,
    PermanentHost,
    Observation,
)

__all__ = [
    # Enums
    "EntityStatus",
    "VocabularyKind",
    "ConfigField",
    "HostedEntityType",
    # Errors
    "OperationalError",
    "ValidationError",
    "Forbidden",
    "NotFound",
    "Conflict",
    "StoreFailure",
    # Models
    "Sensor",
    "SensorConfig",
    "Platform",
    "Location",
    "Context",
    "ContextToAdd",
    "PermanentHost",
    "Observation",
]
