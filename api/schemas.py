# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models validating each operation's input
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

One request model per operation. Bodies are validated here before any
service runs; unknown keys are rejected. Update models are applied with
exclude_unset so only the keys a client sent are treated as changes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.models import Location, SensorConfig

STRICT = {"extra": "forbid"}


# ============================================================================
# SENSORS
# ============================================================================

class SensorCreate(BaseModel):
    """Request to create a sensor."""
    id: str = Field(..., min_length=1, max_length=44)
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    permanent_host: Optional[str] = Field(None, max_length=40)
    has_deployment: Optional[str] = Field(None, max_length=48)
    is_hosted_by: Optional[str] = Field(None, max_length=48)
    initial_config: List[SensorConfig] = Field(default_factory=list)
    current_config: List[SensorConfig] = Field(default_factory=list)

    model_config = {
        **STRICT,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "thermometer-1",
                    "has_deployment": "dep-1",
                    "current_config": [
                        {"has_priority": True, "observed_property": "air-temperature", "unit": "kelvin"}
                    ],
                }
            ]
        },
    }


class SensorUpdate(BaseModel):
    """Request to update a sensor; send null to clear a relationship."""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    permanent_host: Optional[str] = Field(None, max_length=40)
    has_deployment: Optional[str] = Field(None, max_length=48)
    is_hosted_by: Optional[str] = Field(None, max_length=48)
    initial_config: Optional[List[SensorConfig]] = None
    current_config: Optional[List[SensorConfig]] = None

    model_config = STRICT

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client sent."""
        changes = {}
        for name in self.model_fields_set:
            changes[name] = getattr(self, name)
        return changes


# ============================================================================
# PLATFORMS
# ============================================================================

class PlatformCreate(BaseModel):
    """Request to create a platform; id is derived from name when absent."""
    id: Optional[str] = Field(None, min_length=1, max_length=48)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    owner_deployment: str = Field(..., min_length=1, max_length=48)
    is_hosted_by: Optional[str] = Field(None, max_length=48)
    static: bool = False
    location: Optional[Location] = None
    update_location_with_sensor: Optional[str] = Field(None, max_length=44)

    model_config = STRICT


class PlatformUpdate(BaseModel):
    """Request to update a platform; hosting changes use rehost/unhost."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    static: Optional[bool] = None
    location: Optional[Location] = None
    update_location_with_sensor: Optional[str] = Field(None, max_length=44)

    model_config = STRICT

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class RehostRequest(BaseModel):
    """Request to move a platform onto another host."""
    host_id: str = Field(..., min_length=1, max_length=48)

    model_config = STRICT


class ShareRequest(BaseModel):
    """Request to share or unshare a platform with a deployment."""
    deployment_id: str = Field(..., min_length=1, max_length=48)

    model_config = STRICT


# ============================================================================
# PERMANENT HOSTS AND REGISTRATION
# ============================================================================

class PermanentHostCreate(BaseModel):
    """Request to add a permanent host to the registry."""
    id: str = Field(..., min_length=1, max_length=40)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    registration_key: Optional[str] = None
    static: bool = False
    update_location_with_sensor: Optional[str] = Field(None, max_length=44)

    model_config = STRICT


class RegisterRequest(BaseModel):
    """Request to register a permanent host into a deployment."""
    registration_key: str
    deployment_id: str = Field(..., min_length=1, max_length=48)

    model_config = STRICT


class RegisterResponse(BaseModel):
    """Result of a registration."""
    platform_id: str
    sensors: List[str]
    contexts: List[str]


__all__ = [
    "SensorCreate",
    "SensorUpdate",
    "PlatformCreate",
    "PlatformUpdate",
    "RehostRequest",
    "ShareRequest",
    "PermanentHostCreate",
    "RegisterRequest",
    "RegisterResponse",
]
