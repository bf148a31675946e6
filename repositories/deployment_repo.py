# ============================================================================
# DEPLOYMENT AND VOCABULARY REPOSITORIES
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Read access to externally managed entities
# PURPOSE: Database access for deployments and vocabulary tables
# CREATED: 19 OCT 2026
# ============================================================================
"""
Deployment and Vocabulary Repositories

Deployments and vocabulary entities are owned by other services. This
service reads them by id to validate references; create() exists so the
tables can be seeded.
"""

import logging
from typing import Optional

from psycopg import sql

from core.contracts import VocabularyKind
from core.errors import DeploymentAlreadyExists, VocabularyEntityAlreadyExists
from core.models import Deployment, VocabularyEntity
from .base import BaseRepository
from .database import TABLE_DEPLOYMENTS, TABLE_VOCABULARY

logger = logging.getLogger(__name__)


class DeploymentRepository(BaseRepository):
    """Repository for Deployment summaries."""

    TABLE = TABLE_DEPLOYMENTS
    MODEL = Deployment

    async def create(self, deployment: Deployment) -> Deployment:
        with self._error_context(
            "create deployment",
            deployment.id,
            conflict=DeploymentAlreadyExists,
            conflict_message=f"Deployment '{deployment.id}' already exists.",
        ):
            return await self._insert(deployment)

    async def get(self, deployment_id: str) -> Optional[Deployment]:
        with self._error_context("get deployment", deployment_id):
            return await self._fetch_one(
                sql.SQL(
                    "SELECT * FROM {} WHERE id = %s AND status = 'active'"
                ).format(TABLE_DEPLOYMENTS),
                (deployment_id,),
            )


class VocabularyRepository(BaseRepository):
    """Repository for vocabulary entities, keyed by (kind, id)."""

    TABLE = TABLE_VOCABULARY
    MODEL = VocabularyEntity

    async def create(self, entity: VocabularyEntity) -> VocabularyEntity:
        with self._error_context(
            "create vocabulary entity",
            entity.id,
            conflict=VocabularyEntityAlreadyExists,
            conflict_message=f"{entity.kind.value} '{entity.id}' already exists.",
        ):
            return await self._insert(entity)

    async def get(self, kind: VocabularyKind, entity_id: str) -> Optional[VocabularyEntity]:
        with self._error_context(f"get {kind.value}", entity_id):
            return await self._fetch_one(
                sql.SQL(
                    "SELECT * FROM {} WHERE kind = %s AND id = %s AND status = 'active'"
                ).format(TABLE_VOCABULARY),
                (kind.value, entity_id),
            )


__all__ = ["DeploymentRepository", "VocabularyRepository"]
