# ============================================================================
# REGISTRATION SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Permanent host registration workflow
# PURPOSE: Bind a permanent host and all of its sensors into a deployment
# CREATED: 19 OCT 2026
# ============================================================================
"""
Registration Service

register(registration_key, deployment_id):

    1. find the permanent host by key; reject if already registered
    2. check the deployment exists
    3. load every sensor of the host; reject if any is already deployed
    4. create a platform from the host (static flag, location sensor)
    5. move each sensor into the deployment and onto the platform, ending
       and recreating its context
    6. mark the host registered_as the new platform

Each step commits on its own. If step 5 fails for the Nth sensor, the
platform and the first N-1 sensors stay migrated and the host is not yet
marked registered. Running register() again then fails on the sensors
already deployed; repairing that state is a manual job.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from psycopg_pool import AsyncConnectionPool

from core.config import get_defaults
from core.errors import (
    InvalidRegistrationKey,
    PermanentHostAlreadyRegistered,
    PermanentHostNotFound,
    SensorAlreadyRegistered,
)
from core.identifiers import generate_registration_key, with_suffix
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import PermanentHost, Platform
from repositories import PermanentHostRepository, SensorRepository
from .context_service import ContextService, build_context_to_add
from .lookup_service import LookupService
from .platform_service import PlatformService

logger = get_logger(__name__, ComponentType.SERVICE)


class RegistrationService:
    """Service for the permanent host registry and registration."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        platform_service: PlatformService,
        context_service: ContextService,
        lookup_service: LookupService,
    ):
        self.pool = pool
        self.platform_service = platform_service
        self.context_service = context_service
        self.lookup_service = lookup_service
        self.permanent_host_repo = PermanentHostRepository(pool)
        self.sensor_repo = SensorRepository(pool)

    # ----------------------------------------------------------------
    # Permanent host registry
    # ----------------------------------------------------------------

    async def get_permanent_host(self, host_id: str) -> PermanentHost:
        host = await self.permanent_host_repo.get(host_id)
        if host is None:
            raise PermanentHostNotFound(f"Permanent host '{host_id}' not found.")
        return host

    async def get_permanent_host_by_registration_key(self, registration_key: str) -> PermanentHost:
        host = await self.permanent_host_repo.get_by_registration_key(registration_key)
        if host is None:
            raise PermanentHostNotFound("No permanent host has that registration key.")
        return host

    @staticmethod
    def _check_registration_key(registration_key: str) -> str:
        length = get_defaults().context.registration_key_length
        if len(registration_key) != length:
            raise InvalidRegistrationKey(f"A registration key is exactly {length} characters.")
        return registration_key

    async def create_permanent_host(
        self,
        host_id: str,
        name: str,
        description: Optional[str] = None,
        registration_key: Optional[str] = None,
        static: bool = False,
        update_location_with_sensor: Optional[str] = None,
    ) -> PermanentHost:
        """Add a permanent host; a registration key is generated when absent."""
        key = self._check_registration_key(registration_key or generate_registration_key())
        host = PermanentHost(
            id=host_id,
            name=name,
            description=description,
            registration_key=key,
            static=static,
            update_location_with_sensor=update_location_with_sensor,
        )
        created = await self.permanent_host_repo.create(host)
        logger.info(f"Created permanent host {created.id}")
        return created

    async def deregister_permanent_host(self, host_id: str) -> PermanentHost:
        """Clear registered_as; the platform and sensors are left alone."""
        await self.get_permanent_host(host_id)
        updated = await self.permanent_host_repo.update(host_id, {"registered_as": None})
        if updated is None:
            raise PermanentHostNotFound(f"Permanent host '{host_id}' not found.")
        logger.info(f"Deregistered permanent host {host_id}")
        return updated

    # ----------------------------------------------------------------
    # Registration
    # ----------------------------------------------------------------

    async def register(
        self,
        registration_key: str,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Register a permanent host into a deployment.

        Returns:
            {"platform": Platform, "sensors": [sensor ids], "contexts": [context ids]}

        Raises:
            InvalidRegistrationKey: Key has the wrong length
            PermanentHostNotFound: No host has the key
            PermanentHostAlreadyRegistered: The host is registered already
            DeploymentNotFound: The deployment does not exist
            SensorAlreadyRegistered: One of the host's sensors is deployed
        """
        self._check_registration_key(registration_key)
        when = when or datetime.now(timezone.utc)

        with log_context(deployment_id=deployment_id, operation="register"):
            # Step 1: Permanent host
            host = await self.get_permanent_host_by_registration_key(registration_key)
            if host.is_registered:
                raise PermanentHostAlreadyRegistered(
                    f"Permanent host '{host.id}' is already registered as '{host.registered_as}'."
                )

            # Step 2: Deployment
            await self.lookup_service.get_deployment(deployment_id)

            # Step 3: Sensors, all or nothing
            sensors = await self.sensor_repo.list(permanent_host=host.id)
            deployed = [s.id for s in sensors if s.has_deployment]
            if deployed:
                raise SensorAlreadyRegistered(
                    f"Sensor(s) already in a deployment: {', '.join(deployed)}."
                )

            # Step 4: Platform
            platform: Platform = await self.platform_service.create_platform(
                platform_id=with_suffix(host.id),
                name=host.name,
                description=host.description,
                owner_deployment=deployment_id,
                static=host.static,
                update_location_with_sensor=host.update_location_with_sensor,
                initialised_from=host.id,
            )
            logger.info(f"Registration of {host.id} created platform {platform.id}")

            # Step 5: Sensors
            contexts = []
            for sensor in sensors:
                updated = await self.sensor_repo.update(
                    sensor.id, {"has_deployment": deployment_id, "is_hosted_by": platform.id}
                )
                if updated is None:
                    logger.warning(f"Sensor {sensor.id} disappeared during registration")
                    continue
                context = await self.context_service.replace_live_context(
                    sensor.id, build_context_to_add(updated, platform), when
                )
                contexts.append(context.id)

            # Step 6: Mark registered
            await self.permanent_host_repo.update(host.id, {"registered_as": platform.id})

            log_checkpoint("registration_completed", {
                "permanent_host": host.id,
                "platform": platform.id,
                "sensors": [s.id for s in sensors],
            })
            return {
                "platform": platform,
                "sensors": [s.id for s in sensors],
                "contexts": contexts,
            }


__all__ = ["RegistrationService"]
