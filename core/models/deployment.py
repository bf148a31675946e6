# ============================================================================
# DEPLOYMENT & VOCABULARY MODELS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Domain model - Collaborator entities (read by lookups)
# PURPOSE: Deployments own platforms and sensors; vocabulary entities are
#          what sensor configs reference
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Deployment and vocabulary models.

Both are managed elsewhere; this service only reads them (get-by-id) to
validate references. Repositories still expose create() so the tables can
be seeded.
"""

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import EntityStatus, VocabularyKind


class Deployment(BaseModel):
    """
    Deployment summary.

    Maps to: sensorctx.deployments
    """

    __sql_table__: ClassVar[str] = "deployments"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = []

    id: str = Field(..., min_length=1, max_length=48)
    name: str = Field(..., max_length=100)
    public: bool = False
    status: EntityStatus = EntityStatus.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}


class VocabularyEntity(BaseModel):
    """
    Unit, discipline, procedure, observable property or feature of interest.

    Maps to: sensorctx.vocabulary
    """

    __sql_table__: ClassVar[str] = "vocabulary"
    __sql_schema__: ClassVar[str] = "sensorctx"
    __sql_primary_key__: ClassVar[List[str]] = ["kind", "id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List] = []

    kind: VocabularyKind
    id: str = Field(..., min_length=1, max_length=64)
    label: Optional[str] = Field(default=None, max_length=200)
    status: EntityStatus = EntityStatus.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": False}


__all__ = ["Deployment", "VocabularyEntity"]
