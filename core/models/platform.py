# ============================================================================
# PLATFORM MODEL
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Hosting hierarchy node
# PURPOSE: Platforms host sensors and other platforms; each keeps a
#          denormalized root-first ancestor path for descendant queries
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Platform Model

Invariants:
    hosted_by_path == host.hosted_by_path + [host.id]   (empty when unhosted)
    a static platform never has a mobile (static=False) host
    owner_deployment is always in in_deployments

hosted_by_path containing X means X is an ancestor, so
`hosted_by_path @> '["X"]'` selects the whole subtree under X.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import EntityStatus
from core.models.location import Location


class Platform(BaseModel):
    """
    Platform hosting sensors and sub-platforms.

    Maps to: sensorctx.platforms
    """

    # SQL DDL METADATA
    __sql_table__: ClassVar[str] = "platforms"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = [
        ("idx_platforms_owner_deployment", ["owner_deployment"], "status = 'active'"),
        ("idx_platforms_is_hosted_by", ["is_hosted_by"], "status = 'active'"),
        ("idx_platforms_location_sensor", ["update_location_with_sensor"],
         "update_location_with_sensor IS NOT NULL"),
        {"name": "idx_platforms_hosted_by_path", "columns": ["hosted_by_path"], "type": "gin"},
        {"name": "idx_platforms_in_deployments", "columns": ["in_deployments"], "type": "gin"},
    ]

    # Identity
    id: str = Field(..., min_length=1, max_length=48)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)

    # Deployments
    owner_deployment: str = Field(..., max_length=48)
    in_deployments: List[str] = Field(default_factory=list)

    # Hosting
    is_hosted_by: Optional[str] = Field(default=None, max_length=48)
    hosted_by_path: List[str] = Field(default_factory=list)
    static: bool = False

    # Location
    location: Optional[Location] = None
    update_location_with_sensor: Optional[str] = Field(default=None, max_length=44)

    # Set when the platform was created by registering a permanent host
    initialised_from: Optional[str] = Field(default=None, max_length=48)

    # Status
    status: EntityStatus = EntityStatus.ACTIVE

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}

    # ----------------------------------------------------------------
    # Hierarchy helpers
    # ----------------------------------------------------------------

    @property
    def is_mobile(self) -> bool:
        return not self.static

    def path_for_children(self) -> List[str]:
        """The hosted_by_path anything hosted directly on this platform gets."""
        return [*self.hosted_by_path, self.id]

    def is_in_deployment(self, deployment_id: str) -> bool:
        return deployment_id in self.in_deployments


# Fields update_platform accepts; hosting changes go through rehost/unhost
PLATFORM_UPDATABLE_FIELDS = (
    "name",
    "description",
    "static",
    "location",
    "update_location_with_sensor",
)


__all__ = ["Platform", "PLATFORM_UPDATABLE_FIELDS"]
