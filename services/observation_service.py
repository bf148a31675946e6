# ============================================================================
# OBSERVATION SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Observation enrichment
# PURPOSE: Merge the context valid at an observation's result time into it,
#          recording unknown sensors instead of failing
# CREATED: 19 OCT 2026
# ============================================================================
"""
Observation Service

add_context(observation):

    1. require made_by_sensor and result_time
    2. resolve the context valid at result_time
       (none: record an unknown-sensor occurrence, return unchanged)
    3. merge the context payload into the observation
    4. still no location: walk hosted_by_path from the nearest platform
       up to the root and adopt the first location found
"""

from typing import Any, Dict, List

from psycopg_pool import AsyncConnectionPool

from core.context_merge import merge
from core.errors import ContextNotFound, InvalidObservation, UnknownSensorNotFound
from core.logging import ComponentType, get_logger, log_context
from core.models import Observation, UnknownSensor
from repositories import PlatformRepository, UnknownSensorRepository
from .context_service import ContextService

logger = get_logger(__name__, ComponentType.SERVICE)


class ObservationService:
    """Service for observation enrichment."""

    def __init__(self, pool: AsyncConnectionPool, context_service: ContextService):
        self.pool = pool
        self.context_service = context_service
        self.platform_repo = PlatformRepository(pool)
        self.unknown_sensor_repo = UnknownSensorRepository(pool)

    async def add_context(self, observation: Observation) -> Observation:
        """
        Enrich an observation with the context valid at its result time.

        Raises:
            InvalidObservation: made_by_sensor or result_time missing
        """
        if not observation.made_by_sensor:
            raise InvalidObservation("An observation needs made_by_sensor.")
        if observation.result_time is None:
            raise InvalidObservation("An observation needs a result_time.")

        sensor_id = observation.made_by_sensor
        with log_context(sensor_id=sensor_id, operation="add_context"):
            # Step 1: Context at result time
            try:
                context = await self.context_service.get_context_at(sensor_id, observation.result_time)
            except ContextNotFound:
                await self.unknown_sensor_repo.upsert(sensor_id, observation.to_document())
                logger.info(f"No context for sensor {sensor_id} at {observation.result_time.isoformat()}")
                return observation

            # Step 2: Merge
            merged: Dict[str, Any] = merge(observation.to_document(), context.to_add)

            # Step 3: Location from the hosting path
            if merged.get("location") is None and merged.get("hosted_by_path"):
                location = await self._location_from_path(merged["hosted_by_path"])
                if location is not None:
                    merged["location"] = location

            logger.debug(f"Merged context {context.id} into observation")
            return Observation.model_validate(merged)

    async def _location_from_path(self, hosted_by_path: List[str]):
        """The location of the nearest platform on the path that has one."""
        platforms = {p.id: p for p in await self.platform_repo.get_many(hosted_by_path)}
        for platform_id in reversed(hosted_by_path):
            platform = platforms.get(platform_id)
            if platform is not None and platform.location is not None:
                return platform.location.model_dump(mode="json")
        return None

    # ----------------------------------------------------------------
    # Unknown sensors
    # ----------------------------------------------------------------

    async def get_unknown_sensors(self, limit: int = 100) -> List[UnknownSensor]:
        return await self.unknown_sensor_repo.list(limit=limit)

    async def delete_unknown_sensor(self, sensor_id: str) -> None:
        if not await self.unknown_sensor_repo.delete(sensor_id):
            raise UnknownSensorNotFound(f"Unknown sensor '{sensor_id}' not found.")
        logger.info(f"Deleted unknown sensor {sensor_id}")


__all__ = ["ObservationService"]
