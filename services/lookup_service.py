# ============================================================================
# LOOKUP SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Collaborator lookups
# PURPOSE: Get-by-id for deployments and vocabulary entities, used to
#          validate references before writes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Lookup Service

Narrow get-by-id access to entities owned by other services. Each getter
raises the matching NotFound subclass when the id does not resolve.
"""

from typing import Iterable, List

from psycopg_pool import AsyncConnectionPool

from core.contracts import VocabularyKind
from core.errors import DeploymentNotFound, VocabularyEntityNotFound
from core.logging import ComponentType, get_logger
from core.models import Deployment, SensorConfig, VocabularyEntity
from repositories import DeploymentRepository, VocabularyRepository

logger = get_logger(__name__, ComponentType.SERVICE)


class LookupService:
    """Deployment and vocabulary lookups."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool
        self.deployment_repo = DeploymentRepository(pool)
        self.vocabulary_repo = VocabularyRepository(pool)

    async def get_deployment(self, deployment_id: str) -> Deployment:
        deployment = await self.deployment_repo.get(deployment_id)
        if deployment is None:
            raise DeploymentNotFound(f"Deployment '{deployment_id}' not found.")
        return deployment

    async def _get_vocabulary(self, kind: VocabularyKind, entity_id: str) -> VocabularyEntity:
        entity = await self.vocabulary_repo.get(kind, entity_id)
        if entity is None:
            raise VocabularyEntityNotFound(f"{kind.value} '{entity_id}' not found.")
        return entity

    async def get_discipline(self, discipline_id: str) -> VocabularyEntity:
        return await self._get_vocabulary(VocabularyKind.DISCIPLINE, discipline_id)

    async def get_observable_property(self, property_id: str) -> VocabularyEntity:
        return await self._get_vocabulary(VocabularyKind.OBSERVABLE_PROPERTY, property_id)

    async def get_unit(self, unit_id: str) -> VocabularyEntity:
        return await self._get_vocabulary(VocabularyKind.UNIT, unit_id)

    async def get_procedure(self, procedure_id: str) -> VocabularyEntity:
        return await self._get_vocabulary(VocabularyKind.PROCEDURE, procedure_id)

    async def get_feature_of_interest(self, feature_id: str) -> VocabularyEntity:
        return await self._get_vocabulary(VocabularyKind.FEATURE_OF_INTEREST, feature_id)

    async def check_config_references(self, config: Iterable[SensorConfig]) -> List[VocabularyEntity]:
        """
        Resolve every vocabulary id a config references.

        Raises:
            VocabularyEntityNotFound: An id does not resolve
        """
        checked = {}
        for entry in config:
            for config_field, ids in entry.referenced_ids().items():
                kind = config_field.vocabulary_kind()
                for entity_id in ids:
                    if (kind, entity_id) not in checked:
                        checked[(kind, entity_id)] = await self._get_vocabulary(kind, entity_id)
        logger.debug(f"Checked {len(checked)} vocabulary reference(s)")
        return list(checked.values())


__all__ = ["LookupService"]
