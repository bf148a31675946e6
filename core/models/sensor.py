# ============================================================================
# SENSOR MODEL
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Sensor and its config entries
# PURPOSE: Physical sensor with its permanent host, deployment and host
#          platform links, plus the condition-tagged config defaults
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Sensor Model

A sensor is mutated in place; its history lives in Context rows only.

Relationship triangle:
    permanent_host  - hardware unit that owns the sensor
    has_deployment  - deployment the sensor currently reports into
    is_hosted_by    - platform the sensor is currently mounted on

A sensor with a permanent host only joins a deployment through
registration. A hosted sensor is always deployment-bound.

Config:
    initial_config / current_config are ordered lists of SensorConfig.
    Leaving a deployment resets current_config back to initial_config.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from core.contracts import ConfigField, EntityStatus


class SensorConfig(BaseModel):
    """
    One condition-tagged default descriptor.

    The entry applies to observations of `observed_property`. The single
    entry with has_priority=True also supplies the observed property for
    observations that arrive without one.
    """
    id: Optional[str] = Field(default=None, max_length=32)
    has_priority: bool = False
    observed_property: str = Field(..., min_length=1)
    unit: Optional[str] = None
    has_feature_of_interest: Optional[str] = None
    disciplines: List[str] = Field(default_factory=list)
    used_procedures: List[str] = Field(default_factory=list)

    model_config = {"frozen": False}

    def with_id(self) -> "SensorConfig":
        """Return this entry with a generated id when it has none."""
        if self.id:
            return self
        return self.model_copy(update={"id": uuid4().hex[:12]})

    def value_for(self, config_field: ConfigField):
        """The value this entry contributes to a context field, or None."""
        value = getattr(self, config_field.value)
        if config_field.is_list():
            return list(value) if value else None
        return value

    def referenced_ids(self) -> Dict[ConfigField, List[str]]:
        """Vocabulary ids referenced by this entry, grouped by field."""
        refs: Dict[ConfigField, List[str]] = {}
        for config_field in ConfigField:
            value = self.value_for(config_field)
            if value is None:
                continue
            refs[config_field] = value if isinstance(value, list) else [value]
        return refs


class Sensor(BaseModel):
    """
    Sensor catalog entry.

    Maps to: sensorctx.sensors
    """

    # SQL DDL METADATA
    __sql_table__: ClassVar[str] = "sensors"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = [
        ("idx_sensors_permanent_host", ["permanent_host"], "status = 'active'"),
        ("idx_sensors_has_deployment", ["has_deployment"], "status = 'active'"),
        ("idx_sensors_is_hosted_by", ["is_hosted_by"], "status = 'active'"),
    ]

    # Identity
    id: str = Field(..., min_length=1, max_length=44)
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)

    # Relationships
    permanent_host: Optional[str] = Field(default=None, max_length=48)
    has_deployment: Optional[str] = Field(default=None, max_length=48)
    is_hosted_by: Optional[str] = Field(default=None, max_length=48)

    # Config
    initial_config: List[SensorConfig] = Field(default_factory=list)
    current_config: List[SensorConfig] = Field(default_factory=list)

    # Status
    status: EntityStatus = EntityStatus.ACTIVE

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}


# Fields a client may send on create/update; everything else is server managed
SENSOR_UPDATABLE_FIELDS = (
    "name",
    "description",
    "permanent_host",
    "has_deployment",
    "is_hosted_by",
    "initial_config",
    "current_config",
)


__all__ = ["Sensor", "SensorConfig", "SENSOR_UPDATABLE_FIELDS"]
