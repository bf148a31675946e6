# ============================================================================
# SENSOR SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Sensor lifecycle controller
# PURPOSE: Create, update and delete sensors, cutting a new context version
#          whenever the effective context payload changes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Sensor Service

Orchestrates the sensor lifecycle:

- create_sensor: guard, config and reference checks, write, first context
- update_sensor: guard, transition side effects, write, then compare the
  candidate payload with the live context and supersede only on a change
- delete_sensor: end the live context, soft delete, detach location
  pointers that name the sensor

Payload comparison ignores context ids, start dates and config entry ids,
so editing name or description never produces a new context version.
"""

from typing import Any, Dict, Iterable, List, Optional

from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError as PydanticValidationError

from core.errors import (
    ContextNotFound,
    InvalidSensor,
    InvalidSensorConfig,
    PermanentHostNotFound,
    PlatformNotFound,
    SensorNotFound,
    SensorPlatformNotInDeployment,
)
from core.logging import ComponentType, get_logger, log_context
from core.models import (
    SENSOR_UPDATABLE_FIELDS,
    Context,
    ContextToAdd,
    Platform,
    Sensor,
    SensorConfig,
)
from repositories import PermanentHostRepository, PlatformRepository, SensorRepository
from .context_service import ContextService, build_context_to_add
from .lookup_service import LookupService
from .sensor_guard import check_sensor_create, check_sensor_update

logger = get_logger(__name__, ComponentType.SERVICE)

CONFIG_FIELDS = ("initial_config", "current_config")


def prepare_config(config: Iterable[Any]) -> List[SensorConfig]:
    """
    Validate a config list and give every entry an id.

    Raises:
        InvalidSensorConfig: Malformed entry, more than one priority entry,
            or an observed property configured twice
    """
    try:
        entries = [
            entry if isinstance(entry, SensorConfig) else SensorConfig.model_validate(entry)
            for entry in config or []
        ]
    except PydanticValidationError as exc:
        raise InvalidSensorConfig(f"Invalid config entry: {exc.errors()[0]['msg']}") from exc

    if sum(1 for entry in entries if entry.has_priority) > 1:
        raise InvalidSensorConfig("Only one config entry may have priority.")

    seen = set()
    for entry in entries:
        if entry.observed_property in seen:
            raise InvalidSensorConfig(
                f"Observed property '{entry.observed_property}' is configured more than once."
            )
        seen.add(entry.observed_property)

    return [entry.with_id() for entry in entries]


class SensorService:
    """Service for the sensor lifecycle."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        context_service: ContextService,
        lookup_service: LookupService,
    ):
        """
        Initialize sensor service.

        Args:
            pool: Database connection pool
            context_service: Context version store
            lookup_service: Deployment and vocabulary lookups
        """
        self.pool = pool
        self.context_service = context_service
        self.lookup_service = lookup_service
        self.sensor_repo = SensorRepository(pool)
        self.platform_repo = PlatformRepository(pool)
        self.permanent_host_repo = PermanentHostRepository(pool)

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    async def get_sensor(self, sensor_id: str) -> Sensor:
        sensor = await self.sensor_repo.get(sensor_id)
        if sensor is None:
            raise SensorNotFound(f"Sensor '{sensor_id}' not found.")
        return sensor

    async def get_sensors(
        self,
        permanent_host: Optional[str] = None,
        has_deployment: Optional[str] = None,
        is_hosted_by: Optional[str] = None,
    ) -> List[Sensor]:
        return await self.sensor_repo.list(
            permanent_host=permanent_host,
            has_deployment=has_deployment,
            is_hosted_by=is_hosted_by,
        )

    # ----------------------------------------------------------------
    # Reference checks
    # ----------------------------------------------------------------

    async def _check_references(
        self,
        updates: Dict[str, Any],
        has_deployment: Optional[str],
    ) -> Optional[Platform]:
        """
        Resolve the references being set.

        Returns:
            The host platform when is_hosted_by is being set
        """
        for name in CONFIG_FIELDS:
            if name in updates:
                await self.lookup_service.check_config_references(updates[name])

        if updates.get("has_deployment"):
            await self.lookup_service.get_deployment(updates["has_deployment"])

        if updates.get("permanent_host"):
            if await self.permanent_host_repo.get(updates["permanent_host"]) is None:
                raise PermanentHostNotFound(
                    f"Permanent host '{updates['permanent_host']}' not found."
                )

        platform = None
        if updates.get("is_hosted_by"):
            platform = await self.platform_repo.get(updates["is_hosted_by"])
            if platform is None:
                raise PlatformNotFound(f"Platform '{updates['is_hosted_by']}' not found.")
            if not platform.is_in_deployment(has_deployment):
                raise SensorPlatformNotInDeployment(
                    f"Platform '{platform.id}' is not in deployment '{has_deployment}'."
                )
        return platform

    async def _host_platform(self, sensor: Sensor) -> Optional[Platform]:
        if not sensor.is_hosted_by:
            return None
        return await self.platform_repo.get(sensor.is_hosted_by)

    async def _ancestors(self, platform: Optional[Platform]) -> List[Platform]:
        """Platforms above the host, nearest first."""
        if platform is None:
            return []
        found = []
        for platform_id in reversed(platform.hosted_by_path):
            ancestor = await self.platform_repo.get(platform_id)
            if ancestor is not None:
                found.append(ancestor)
        return found

    async def _candidate_context(
        self,
        old: Sensor,
        updated: Sensor,
        live: Optional[Context],
    ) -> ContextToAdd:
        """
        The payload the live context should carry after an update.

        Deployment membership and hosting path are carried over from the live
        context, which also holds deployments picked up later through platform
        sharing. They are recomputed from the hosting tree only when the
        sensor's deployment or host changed, or there is no live context.
        """
        relationship_changed = (
            updated.has_deployment != old.has_deployment
            or updated.is_hosted_by != old.is_hosted_by
        )
        if live is None or relationship_changed:
            platform = await self._host_platform(updated)
            return build_context_to_add(updated, platform, await self._ancestors(platform))

        return ContextToAdd.build(
            in_deployments=live.to_add.in_deployments,
            hosted_by_path=live.to_add.hosted_by_path,
            config=updated.current_config,
        )

    # ----------------------------------------------------------------
    # Create
    # ----------------------------------------------------------------

    async def create_sensor(self, sensor: Sensor) -> Sensor:
        """
        Create a sensor and its first context.

        Raises:
            SensorRelationshipForbidden: Illegal relationship combination
            InvalidSensorConfig: Config entries are inconsistent
            NotFound: A referenced entity does not exist
            SensorAlreadyExists: The id is taken
        """
        with log_context(sensor_id=sensor.id, operation="create_sensor"):
            # Step 1: Relationship rules
            check_sensor_create(sensor)

            # Step 2: Config
            current_config = prepare_config(sensor.current_config)
            initial_config = (
                prepare_config(sensor.initial_config) if sensor.initial_config
                else [entry.model_copy() for entry in current_config]
            )
            sensor = sensor.model_copy(update={
                "initial_config": initial_config,
                "current_config": current_config,
            })

            # Step 3: References
            platform = await self._check_references(
                {
                    "initial_config": initial_config,
                    "current_config": current_config,
                    "has_deployment": sensor.has_deployment,
                    "permanent_host": sensor.permanent_host,
                    "is_hosted_by": sensor.is_hosted_by,
                },
                sensor.has_deployment,
            )

            # Step 4: Write
            created = await self.sensor_repo.create(sensor)

            # Step 5: First context
            context = await self.context_service.create_context(
                Context(
                    sensor=created.id,
                    to_add=build_context_to_add(created, platform, await self._ancestors(platform)),
                )
            )
            logger.info(f"Created sensor {created.id} with context {context.id}")
            return created

    # ----------------------------------------------------------------
    # Update
    # ----------------------------------------------------------------

    async def update_sensor(self, sensor_id: str, updates: Dict[str, Any]) -> Sensor:
        """
        Update a sensor, superseding its live context if the payload changed.

        Args:
            sensor_id: Sensor to update
            updates: Field values to set; absent keys are left alone

        Raises:
            InvalidSensor: Unknown or read-only field
            SensorNotFound: No active sensor with the id
            SensorRelationshipForbidden: Illegal relationship transition
        """
        unknown = set(updates) - set(SENSOR_UPDATABLE_FIELDS)
        if unknown:
            raise InvalidSensor(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

        with log_context(sensor_id=sensor_id, operation="update_sensor"):
            # Step 1: Load and guard
            old = await self.get_sensor(sensor_id)
            check_sensor_update(old, updates)

            updates = dict(updates)
            for name in CONFIG_FIELDS:
                if name in updates:
                    updates[name] = prepare_config(updates[name])

            has_deployment = updates.get("has_deployment", old.has_deployment)
            await self._check_references(updates, has_deployment)

            # Step 2: Transition side effects
            if "permanent_host" in updates and old.permanent_host and updates["permanent_host"] != old.permanent_host:
                await self._detach_from_permanent_host(old.permanent_host, sensor_id)

            if "has_deployment" in updates and updates["has_deployment"] is None and old.has_deployment:
                updates["current_config"] = [
                    entry.model_copy() for entry in updates.get("initial_config", old.initial_config)
                ]
                logger.info(f"Sensor {sensor_id} left deployment {old.has_deployment}; config reset")

            # Step 3: Write
            updated = await self.sensor_repo.update(sensor_id, updates)
            if updated is None:
                raise SensorNotFound(f"Sensor '{sensor_id}' not found.")

            # Step 4: Supersede the live context if the payload changed
            live = await self.context_service.context_repo.get_live(sensor_id)
            candidate = await self._candidate_context(old, updated, live)

            if live is None:
                await self.context_service.create_context(Context(sensor=sensor_id, to_add=candidate))
                logger.info(f"Sensor {sensor_id} had no live context; created one")
            elif live.to_add.comparable() != candidate.comparable():
                await self.context_service.replace_live_context(sensor_id, candidate)
                logger.info(f"Sensor {sensor_id} context superseded")
            else:
                logger.debug(f"Sensor {sensor_id} context unchanged")

            return updated

    async def _detach_from_permanent_host(self, host_id: str, sensor_id: str) -> None:
        host = await self.permanent_host_repo.get(host_id)
        if host is not None and host.update_location_with_sensor == sensor_id:
            await self.permanent_host_repo.update(host_id, {"update_location_with_sensor": None})
            logger.info(f"Detached location sensor {sensor_id} from permanent host {host_id}")

    # ----------------------------------------------------------------
    # Delete
    # ----------------------------------------------------------------

    async def delete_sensor(self, sensor_id: str) -> None:
        """
        End the live context and soft delete the sensor.

        Raises:
            SensorNotFound: No active sensor with the id
        """
        with log_context(sensor_id=sensor_id, operation="delete_sensor"):
            await self.get_sensor(sensor_id)

            try:
                await self.context_service.end_live_context(sensor_id)
            except ContextNotFound:
                logger.debug(f"Sensor {sensor_id} had no live context to end")

            if not await self.sensor_repo.soft_delete(sensor_id):
                raise SensorNotFound(f"Sensor '{sensor_id}' not found.")

            await self.permanent_host_repo.clear_update_location_with_sensor(sensor_id)
            await self.platform_repo.clear_update_location_with_sensor(sensor_id)
            logger.info(f"Deleted sensor {sensor_id}")


__all__ = ["SensorService", "prepare_config"]
