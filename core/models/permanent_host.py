# ============================================================================
# PERMANENT HOST MODEL
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Hardware unit registry entry
# PURPOSE: A physical unit that owns sensors and joins a deployment as a
#          whole by way of its registration key
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
PermanentHost Model

Registration binds the unit into a deployment: a platform is created from
the host (static flag, location sensor) and `registered_as` points at it.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import EntityStatus


class PermanentHost(BaseModel):
    """
    Permanent host registry entry.

    Maps to: sensorctx.permanent_hosts
    """

    # SQL DDL METADATA
    __sql_table__: ClassVar[str] = "permanent_hosts"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = [
        {"name": "idx_permanent_hosts_registration_key", "columns": ["registration_key"], "type": "unique"},
        ("idx_permanent_hosts_registered_as", ["registered_as"], "registered_as IS NOT NULL"),
    ]

    id: str = Field(..., min_length=1, max_length=40)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)

    registration_key: str = Field(..., min_length=10, max_length=10)
    registered_as: Optional[str] = Field(default=None, max_length=48)

    static: bool = False
    update_location_with_sensor: Optional[str] = Field(default=None, max_length=44)

    status: EntityStatus = EntityStatus.ACTIVE

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}

    @property
    def is_registered(self) -> bool:
        return self.registered_as is not None


__all__ = ["PermanentHost"]
