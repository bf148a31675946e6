# ============================================================================
# CONTEXT MODEL
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Versioned observation context
# PURPOSE: One validity interval of a sensor's context and the payload
#          merged into observations made during that interval
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Context Model

A Context covers [start_date, end_date) for one sensor. A missing end_date
marks the live version; a partial unique index on (sensor) WHERE end_date
IS NULL keeps at most one live version per sensor. Closed versions are
never modified again.

Payload (to_add):
    simple fields   in_deployments, hosted_by_path
    complex fields  observed_property, has_feature_of_interest,
                    used_procedures, disciplines, unit
                    each {value, ifs: [{if: {...}, value}]}
    config          the sensor config the complex fields were derived from
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from core.contracts import ConfigField
from core.models.sensor import SensorConfig


class FieldRule(BaseModel):
    """
    Conditional rule: when `if_` partially matches the observation built
    so far, the field takes `value`.

    Serialized with the key "if".
    """
    if_: Dict[str, Any] = Field(..., alias="if")
    value: Any

    model_config = {"frozen": False, "populate_by_name": True}


class ComplexField(BaseModel):
    """Plain fallback value and/or ordered conditional rules for one field."""
    value: Optional[Any] = None
    ifs: List[FieldRule] = Field(default_factory=list)

    model_config = {"frozen": False}

    def is_empty(self) -> bool:
        return self.value is None and not self.ifs


class ContextToAdd(BaseModel):
    """What a context adds to observations made while it is valid."""

    # Simple fields
    in_deployments: Optional[List[str]] = None
    hosted_by_path: Optional[List[str]] = None

    # Complex fields
    observed_property: Optional[ComplexField] = None
    has_feature_of_interest: Optional[ComplexField] = None
    used_procedures: Optional[ComplexField] = None
    disciplines: Optional[ComplexField] = None
    unit: Optional[ComplexField] = None

    # Source config
    config: List[SensorConfig] = Field(default_factory=list)

    model_config = {"frozen": False}

    @field_validator("in_deployments", "hosted_by_path")
    @classmethod
    def _empty_list_is_absent(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return value or None

    @classmethod
    def build(
        cls,
        in_deployments: Optional[List[str]] = None,
        hosted_by_path: Optional[List[str]] = None,
        config: Optional[List[SensorConfig]] = None,
    ) -> "ContextToAdd":
        """
        Build a payload, deriving the complex fields from a sensor config.

        observed_property.value comes from the priority entry. Every other
        field gets one rule per entry that sets it, keyed on that entry's
        observed property. An observation lacking an observed property
        therefore picks up the priority entry's defaults; one whose observed
        property matches no entry gets no config defaults at all.
        """
        config = list(config or [])
        fields: Dict[str, ComplexField] = {}

        priority = next((entry for entry in config if entry.has_priority), None)
        if priority is not None:
            fields[ConfigField.OBSERVED_PROPERTY.value] = ComplexField(
                value=priority.observed_property
            )

        for config_field in ConfigField:
            if config_field == ConfigField.OBSERVED_PROPERTY:
                continue
            rules = [
                FieldRule(
                    if_={ConfigField.OBSERVED_PROPERTY.value: entry.observed_property},
                    value=entry.value_for(config_field),
                )
                for entry in config
                if entry.value_for(config_field) is not None
            ]
            if rules:
                fields[config_field.value] = ComplexField(ifs=rules)

        return cls(
            in_deployments=in_deployments,
            hosted_by_path=hosted_by_path,
            config=config,
            **fields,
        )

    def complex_fields(self) -> Dict[ConfigField, ComplexField]:
        """Complex fields that are set, in merge order."""
        result = {}
        for config_field in ConfigField.merge_order():
            value = getattr(self, config_field.value)
            if value is not None and not value.is_empty():
                result[config_field] = value
        return result

    def comparable(self) -> Dict[str, Any]:
        """
        Serialized form with per-config-entry ids removed.

        Two payloads describing the same state compare equal even when their
        config entries were assigned different ids.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for entry in data.get("config", []):
            entry.pop("id", None)
        return data


class Context(BaseModel):
    """
    A version of a sensor's context.

    Maps to: sensorctx.contexts
    """

    # SQL DDL METADATA
    __sql_table__: ClassVar[str] = "contexts"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = [
        # At most one live context per sensor
        {
            "name": "idx_contexts_live_sensor",
            "columns": ["sensor"],
            "type": "unique",
            "partial_where": "end_date IS NULL",
        },
        {"name": "idx_contexts_sensor_start", "columns": ["sensor", "start_date"], "descending": True},
        {"name": "idx_contexts_to_add", "columns": ["to_add"], "type": "gin"},
    ]

    id: str = Field(default_factory=lambda: uuid4().hex, max_length=32)
    sensor: str = Field(..., min_length=1, max_length=44)
    start_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_date: Optional[datetime] = None
    to_add: ContextToAdd = Field(default_factory=ContextToAdd)

    model_config = {"frozen": False}

    @property
    def is_live(self) -> bool:
        return self.end_date is None

    def covers(self, timestamp: datetime) -> bool:
        """Whether timestamp falls in [start_date, end_date)."""
        if timestamp < self.start_date:
            return False
        return self.end_date is None or timestamp < self.end_date


__all__ = ["Context", "ContextToAdd", "ComplexField", "FieldRule"]
