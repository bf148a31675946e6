# ============================================================================
# PLATFORM SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Platform hosting hierarchy
# PURPOSE: Create, rehost, unhost, share and delete platforms, keeping
#          ancestor paths, locations and sensor contexts consistent
# CREATED: 19 OCT 2026
# ============================================================================
"""
Platform Service

Maintains the hosting tree:

    hosted_by_path      root-first ancestors, rewritten for the whole
                        subtree on rehost/unhost/delete
    location            inherited top-down; mobile platforms and platforms
                        without a location follow their host, platforms
                        that keep their own location stop the propagation
    static/mobile rule  a static platform never sits on a mobile host
    contexts            every structural change re-versions the live
                        contexts of sensors hosted anywhere in the subtree

Multi-step operations (rehost with propagation, delete, deployment
deletion) commit each write on its own. A failure part way leaves the
earlier writes in place.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError as PydanticValidationError

from core.config import get_defaults
from core.contracts import HostedEntityType
from core.errors import (
    CannotUnshareFromOwnerDeployment,
    DeploymentIsPublic,
    HostPlatformInPrivateDeployment,
    InvalidObservation,
    InvalidPlatform,
    InvalidPlatformHost,
    PlatformAlreadyExists,
    PlatformAlreadyInDeployment,
    PlatformAlreadyUnhosted,
    PlatformNotFound,
    PlatformNotSharedWithDeployment,
    SensorNotFound,
    StaticPlatformOnMobileHost,
)
from core.geometry import validate_geometry
from core.identifiers import name_to_client_id, with_suffix
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import PLATFORM_UPDATABLE_FIELDS, ContextToAdd, Location, Observation, Platform, Sensor
from repositories import PermanentHostRepository, PlatformRepository, SensorRepository
from .context_service import ContextService, build_context_to_add
from .lookup_service import LookupService

logger = get_logger(__name__, ComponentType.SERVICE)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _by_depth(platforms: Sequence[Platform]) -> List[Platform]:
    return sorted(platforms, key=lambda p: (len(p.hosted_by_path), p.id))


class PlatformService:
    """Service for platforms and the hosting tree."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        context_service: ContextService,
        lookup_service: LookupService,
    ):
        """
        Initialize platform service.

        Args:
            pool: Database connection pool
            context_service: Context version store
            lookup_service: Deployment lookups
        """
        self.pool = pool
        self.context_service = context_service
        self.lookup_service = lookup_service
        self.platform_repo = PlatformRepository(pool)
        self.sensor_repo = SensorRepository(pool)
        self.permanent_host_repo = PermanentHostRepository(pool)

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    async def get_platform(self, platform_id: str) -> Platform:
        platform = await self.platform_repo.get(platform_id)
        if platform is None:
            raise PlatformNotFound(f"Platform '{platform_id}' not found.")
        return platform

    async def get_platforms(
        self,
        owner_deployment: Optional[str] = None,
        in_deployment: Optional[str] = None,
    ) -> List[Platform]:
        return await self.platform_repo.list(
            owner_deployment=owner_deployment,
            in_deployment=in_deployment,
        )

    async def get_descendants_of_platform(self, platform_id: str) -> List[Platform]:
        """Every platform below this one, parents before children."""
        await self.get_platform(platform_id)
        return _by_depth(await self.platform_repo.list_descendants(platform_id))

    async def build_nested_hosts(self, platform_id: str) -> Dict[str, Any]:
        """
        The hosting tree under a platform.

        Returns:
            {"id", "name", "type": "platform", "hosts": [...]} where hosts
            holds sub-platforms (recursively) and sensors ("type": "sensor")
        """
        root = await self.get_platform(platform_id)
        descendants = _by_depth(await self.platform_repo.list_descendants(platform_id))
        platforms = [root, *descendants]

        nodes = {
            p.id: {"id": p.id, "name": p.name, "type": HostedEntityType.PLATFORM.value, "hosts": []}
            for p in platforms
        }
        for p in descendants:
            if p.is_hosted_by in nodes:
                nodes[p.is_hosted_by]["hosts"].append(nodes[p.id])

        sensors = await self.sensor_repo.list(hosted_by_any=list(nodes))
        for sensor in sensors:
            nodes[sensor.is_hosted_by]["hosts"].append({
                "id": sensor.id,
                "name": sensor.name,
                "type": HostedEntityType.SENSOR.value,
            })

        return nodes[root.id]

    # ----------------------------------------------------------------
    # Checks
    # ----------------------------------------------------------------

    async def _check_host_access(self, owner_deployment: str, host: Platform) -> None:
        """A host must be in the platform's deployment or owned by a public one."""
        if host.is_in_deployment(owner_deployment):
            return
        host_deployment = await self.lookup_service.get_deployment(host.owner_deployment)
        if not host_deployment.public:
            raise HostPlatformInPrivateDeployment(
                f"Platform '{host.id}' belongs to a private deployment not shared with '{owner_deployment}'."
            )

    async def _check_host(self, static: bool, owner_deployment: str, host: Platform) -> None:
        if static and host.is_mobile:
            raise StaticPlatformOnMobileHost(
                f"A static platform cannot be hosted on mobile platform '{host.id}'."
            )
        await self._check_host_access(owner_deployment, host)

    @staticmethod
    def _check_location(location: Location, error_cls=InvalidPlatform) -> Location:
        """Validate geometry and reject locations too far in the future."""
        validate_geometry(location.geometry)
        tolerance = timedelta(seconds=get_defaults().context.location_future_tolerance_seconds)
        if location.valid_at > _now() + tolerance:
            raise error_cls("A location cannot be valid from a time in the future.")
        return location

    # ----------------------------------------------------------------
    # Subtree propagation
    # ----------------------------------------------------------------

    async def _update_subtree(
        self,
        root_id: str,
        descendants: Sequence[Platform],
        new_root_path: Optional[List[str]] = None,
        location: Optional[Location] = None,
        location_sensor: Optional[str] = None,
    ) -> int:
        """
        Rewrite descendant paths and push a location down the subtree.

        A descendant takes the location when its host took it and it is
        either mobile or has no location of its own.
        """
        received = {root_id} if location is not None else set()
        changed = 0
        for platform in _by_depth(descendants):
            updates: Dict[str, Any] = {}
            if new_root_path is not None:
                path = platform.hosted_by_path
                updates["hosted_by_path"] = list(new_root_path) + path[path.index(root_id):]
            if platform.is_hosted_by in received and (platform.is_mobile or platform.location is None):
                updates["location"] = location
                if location_sensor:
                    updates["update_location_with_sensor"] = location_sensor
                received.add(platform.id)
            if updates:
                await self.platform_repo.update(platform.id, updates)
                changed += 1
        return changed

    # ----------------------------------------------------------------
    # Create
    # ----------------------------------------------------------------

    async def create_platform(
        self,
        name: str,
        owner_deployment: str,
        platform_id: Optional[str] = None,
        description: Optional[str] = None,
        is_hosted_by: Optional[str] = None,
        static: bool = False,
        location: Optional[Location] = None,
        update_location_with_sensor: Optional[str] = None,
        initialised_from: Optional[str] = None,
    ) -> Platform:
        """
        Create a platform, optionally hosted on another.

        Without platform_id the id is derived from the name; a collision
        on a derived id is retried once with a random suffix.

        Raises:
            DeploymentNotFound: owner_deployment does not exist
            PlatformNotFound: The host does not exist
            StaticPlatformOnMobileHost: Static platform on a mobile host
            HostPlatformInPrivateDeployment: Host not visible to the deployment
            PlatformAlreadyExists: The id is taken
        """
        with log_context(platform_id=platform_id, deployment_id=owner_deployment,
                         operation="create_platform"):
            # Step 1: Deployment
            await self.lookup_service.get_deployment(owner_deployment)

            # Step 2: Host
            hosted_by_path: List[str] = []
            if is_hosted_by:
                host = await self.get_platform(is_hosted_by)
                await self._check_host(static, owner_deployment, host)
                hosted_by_path = host.path_for_children()
                if location is None and host.location is not None:
                    location = host.location.model_copy(deep=True)
                    logger.debug(f"Inheriting location of host {host.id}")
                elif location is not None:
                    self._check_location(location)
            elif location is not None:
                self._check_location(location)

            # Step 3: Id
            derived = platform_id is None
            if derived:
                max_length = get_defaults().context.max_platform_id_length
                platform_id = name_to_client_id(name, max_length) or with_suffix("platform")

            platform = Platform(
                id=platform_id,
                name=name,
                description=description,
                owner_deployment=owner_deployment,
                in_deployments=[owner_deployment],
                is_hosted_by=is_hosted_by,
                hosted_by_path=hosted_by_path,
                static=static,
                location=location,
                update_location_with_sensor=update_location_with_sensor,
                initialised_from=initialised_from,
            )

            # Step 4: Write
            try:
                created = await self.platform_repo.create(platform)
            except PlatformAlreadyExists:
                if not derived:
                    raise
                platform.id = with_suffix(platform_id)
                logger.info(f"Platform id {platform_id} taken, retrying as {platform.id}")
                created = await self.platform_repo.create(platform)

            logger.info(f"Created platform {created.id} in deployment {owner_deployment}")
            return created

    # ----------------------------------------------------------------
    # Hosting changes
    # ----------------------------------------------------------------

    async def rehost_platform(
        self,
        platform_id: str,
        host_id: str,
        when: Optional[datetime] = None,
    ) -> Platform:
        """
        Move a platform (and its subtree) onto a new host.

        Raises:
            InvalidPlatformHost: Already on that host, or the move would
                create a cycle
            StaticPlatformOnMobileHost: Static platform on a mobile host
            HostPlatformInPrivateDeployment: Host not visible to the deployment
        """
        when = when or _now()
        with log_context(platform_id=platform_id, operation="rehost_platform"):
            # Step 1: Validate
            platform = await self.get_platform(platform_id)
            if platform.is_hosted_by == host_id:
                raise InvalidPlatformHost(f"Platform '{platform_id}' is already hosted on '{host_id}'.")
            if host_id == platform_id:
                raise InvalidPlatformHost("A platform cannot host itself.")

            host = await self.get_platform(host_id)
            if platform_id in host.hosted_by_path:
                raise InvalidPlatformHost(
                    f"Platform '{host_id}' is below '{platform_id}'; rehosting would create a cycle."
                )
            await self._check_host(platform.static, platform.owner_deployment, host)

            # Step 2: The platform itself
            new_path = host.path_for_children()
            updates: Dict[str, Any] = {"is_hosted_by": host_id, "hosted_by_path": new_path}
            location = None
            if host.location is not None and (platform.is_mobile or platform.location is None):
                location = host.location
                updates["location"] = location
                if host.update_location_with_sensor:
                    updates["update_location_with_sensor"] = host.update_location_with_sensor
            updated = await self.platform_repo.update(platform_id, updates)
            if updated is None:
                raise PlatformNotFound(f"Platform '{platform_id}' not found.")

            # Step 3: Subtree
            descendants = await self.platform_repo.list_descendants(platform_id)
            changed = await self._update_subtree(
                platform_id, descendants, new_path, location, host.update_location_with_sensor,
            )
            logger.info(f"Rehosted {platform_id} onto {host_id}; {changed} descendant(s) updated")

            # Step 4: Contexts
            await self.context_service.process_platform_host_change(platform_id, new_path, when)
            return updated

    async def _detach_from_host(self, platform_id: str) -> Platform:
        """Clear a platform's host and re-root its subtree paths on it."""
        updated = await self.platform_repo.update(
            platform_id, {"is_hosted_by": None, "hosted_by_path": []}
        )
        if updated is None:
            raise PlatformNotFound(f"Platform '{platform_id}' not found.")

        descendants = await self.platform_repo.list_descendants(platform_id)
        await self._update_subtree(platform_id, descendants, new_root_path=[])
        return updated

    async def unhost_platform(self, platform_id: str, when: Optional[datetime] = None) -> Platform:
        """
        Detach a platform from its host. Its last location is kept.

        Raises:
            PlatformAlreadyUnhosted: The platform has no host
        """
        when = when or _now()
        with log_context(platform_id=platform_id, operation="unhost_platform"):
            platform = await self.get_platform(platform_id)
            if not platform.is_hosted_by:
                raise PlatformAlreadyUnhosted(f"Platform '{platform_id}' is not hosted.")

            updated = await self._detach_from_host(platform_id)
            logger.info(f"Unhosted {platform_id} from {platform.is_hosted_by}")

            await self.context_service.process_platform_host_change(platform_id, [], when)
            return updated

    # ----------------------------------------------------------------
    # Updates
    # ----------------------------------------------------------------

    async def update_platform(self, platform_id: str, updates: Dict[str, Any]) -> Platform:
        """
        Update descriptive fields, mobility, location or location sensor.

        Raises:
            InvalidPlatform: Unknown or read-only field, bad location
            StaticPlatformOnMobileHost: Becoming static on a mobile host, or
                mobile under static children
        """
        unknown = set(updates) - set(PLATFORM_UPDATABLE_FIELDS)
        if unknown:
            raise InvalidPlatform(f"Cannot update field(s): {', '.join(sorted(unknown))}.")

        with log_context(platform_id=platform_id, operation="update_platform"):
            platform = await self.get_platform(platform_id)
            updates = dict(updates)

            if updates.get("static") and platform.is_mobile and platform.is_hosted_by:
                host = await self.get_platform(platform.is_hosted_by)
                if host.is_mobile:
                    raise StaticPlatformOnMobileHost(
                        f"Platform '{platform_id}' is hosted on mobile platform '{host.id}'."
                    )
            if updates.get("static") is False and platform.static:
                children = await self.platform_repo.list(is_hosted_by=platform_id)
                static_children = [child.id for child in children if child.static]
                if static_children:
                    raise StaticPlatformOnMobileHost(
                        f"Platform '{platform_id}' hosts static platform(s): {', '.join(static_children)}."
                    )

            location = updates.get("location")
            if location is not None:
                if not isinstance(location, Location):
                    try:
                        location = Location.model_validate(location)
                    except PydanticValidationError as exc:
                        raise InvalidPlatform(f"Invalid location: {exc.errors()[0]['msg']}") from exc
                updates["location"] = self._check_location(location)

            if updates.get("update_location_with_sensor"):
                if await self.sensor_repo.get(updates["update_location_with_sensor"]) is None:
                    raise SensorNotFound(
                        f"Sensor '{updates['update_location_with_sensor']}' not found."
                    )

            updated = await self.platform_repo.update(platform_id, updates)
            if updated is None:
                raise PlatformNotFound(f"Platform '{platform_id}' not found.")

            if location is not None:
                descendants = await self.platform_repo.list_descendants(platform_id)
                await self._update_subtree(platform_id, descendants, location=location)

            logger.info(f"Updated platform {platform_id}: {', '.join(sorted(updates))}")
            return updated

    async def update_platforms_with_location_observation(
        self,
        observation: Observation,
    ) -> List[Platform]:
        """
        Move every platform whose location follows the observing sensor.

        Only platforms in one of the observation's deployments whose current
        location is absent or older are updated. The new location flows down
        to their subtrees.

        Raises:
            InvalidObservation: Missing sensor, deployments or location, or
                a location valid too far in the future
        """
        if not observation.made_by_sensor:
            raise InvalidObservation("A location observation needs made_by_sensor.")
        if not observation.in_deployments:
            raise InvalidObservation("A location observation needs in_deployments.")
        if observation.location is None:
            raise InvalidObservation("A location observation needs a location.")

        location = observation.location
        if "valid_at" not in location.model_fields_set and observation.result_time is not None:
            location = location.model_copy(update={"valid_at": observation.result_time})
        self._check_location(location, InvalidObservation)

        with log_context(sensor_id=observation.made_by_sensor, operation="location_observation"):
            platforms = await self.platform_repo.list_for_location_update(
                observation.made_by_sensor, observation.in_deployments
            )
            moved = []
            for platform in platforms:
                if not location.is_newer_than(platform.location):
                    continue
                updated = await self.platform_repo.update(platform.id, {"location": location})
                if updated is None:
                    continue
                descendants = await self.platform_repo.list_descendants(platform.id)
                await self._update_subtree(platform.id, descendants, location=location)
                moved.append(updated)

            logger.info(f"Location from {observation.made_by_sensor} moved {len(moved)} platform(s)")
            return moved

    # ----------------------------------------------------------------
    # Sharing
    # ----------------------------------------------------------------

    async def share_platform_with_deployment(
        self,
        platform_id: str,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> Platform:
        """
        Make a platform visible in another deployment.

        Raises:
            PlatformAlreadyInDeployment: Already shared with the deployment
        """
        with log_context(platform_id=platform_id, deployment_id=deployment_id,
                         operation="share_platform"):
            platform = await self.get_platform(platform_id)
            await self.lookup_service.get_deployment(deployment_id)
            if platform.is_in_deployment(deployment_id):
                raise PlatformAlreadyInDeployment(
                    f"Platform '{platform_id}' is already in deployment '{deployment_id}'."
                )

            updated = await self.platform_repo.update(
                platform_id, {"in_deployments": [*platform.in_deployments, deployment_id]}
            )
            if updated is None:
                raise PlatformNotFound(f"Platform '{platform_id}' not found.")

            await self.context_service.process_platform_shared_with_deployment(
                platform_id, deployment_id, when
            )
            logger.info(f"Shared platform {platform_id} with {deployment_id}")
            return updated

    async def unshare_platform_with_deployment(
        self,
        platform_id: str,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> Platform:
        """
        Remove a platform from a deployment it was shared with.

        Sensors of that deployment already hosted on the platform stay
        hosted; only the contexts lose the deployment.

        Raises:
            CannotUnshareFromOwnerDeployment: deployment_id owns the platform
            PlatformNotSharedWithDeployment: Not shared with the deployment
        """
        with log_context(platform_id=platform_id, deployment_id=deployment_id,
                         operation="unshare_platform"):
            platform = await self.get_platform(platform_id)
            if deployment_id == platform.owner_deployment:
                raise CannotUnshareFromOwnerDeployment(
                    f"Deployment '{deployment_id}' owns platform '{platform_id}'."
                )
            if not platform.is_in_deployment(deployment_id):
                raise PlatformNotSharedWithDeployment(
                    f"Platform '{platform_id}' is not shared with deployment '{deployment_id}'."
                )

            updated = await self.platform_repo.update(
                platform_id,
                {"in_deployments": [d for d in platform.in_deployments if d != deployment_id]},
            )
            if updated is None:
                raise PlatformNotFound(f"Platform '{platform_id}' not found.")

            await self.context_service.process_platform_unshared_with_deployment(
                platform_id, deployment_id, when
            )
            logger.info(f"Unshared platform {platform_id} from {deployment_id}")
            return updated

    # ----------------------------------------------------------------
    # Deletion
    # ----------------------------------------------------------------

    async def _cut_descendants(self, platform_id: str) -> List[Platform]:
        """
        Detach the subtree from a platform about to be deleted.

        Direct children become unhosted; deeper platforms drop every path
        entry at or above the platform and stay on their nearer ancestor.
        """
        descendants = await self.platform_repo.list_descendants(platform_id)
        for platform in _by_depth(descendants):
            if platform.is_hosted_by == platform_id:
                updates = {"is_hosted_by": None, "hosted_by_path": []}
            else:
                path = platform.hosted_by_path
                updates = {"hosted_by_path": path[path.index(platform_id) + 1:]}
            await self.platform_repo.update(platform.id, updates)

        log_checkpoint("descendants_cut", {
            "platform": platform_id,
            "descendants": [p.id for p in descendants],
        })
        return descendants

    async def _release_sensor(self, sensor: Sensor, leave_deployment: bool) -> ContextToAdd:
        """Clear a sensor's host (and deployment); return its new payload."""
        updates: Dict[str, Any] = {"is_hosted_by": None}
        if leave_deployment:
            updates["has_deployment"] = None
            updates["current_config"] = [entry.model_copy() for entry in sensor.initial_config]
        updated = await self.sensor_repo.update(sensor.id, updates)
        return build_context_to_add(updated or sensor.model_copy(update=updates), None)

    async def delete_platform(self, platform_id: str, when: Optional[datetime] = None) -> None:
        """
        Soft delete a platform.

        Descendants are cut loose, sensors hosted on it are unhosted
        (permanent-host sensors also leave the deployment), permanent hosts
        registered as it are deregistered, and every affected live context
        is re-versioned.
        """
        when = when or _now()
        with log_context(platform_id=platform_id, operation="delete_platform"):
            # Step 1: Descendants
            await self.get_platform(platform_id)
            await self._cut_descendants(platform_id)

            # Step 2: The platform
            await self.platform_repo.soft_delete(platform_id)
            await self.permanent_host_repo.deregister_platforms([platform_id])

            # Step 3: Sensors hosted directly on it
            overrides: Dict[str, ContextToAdd] = {}
            for sensor in await self.sensor_repo.list(is_hosted_by=platform_id):
                overrides[sensor.id] = await self._release_sensor(
                    sensor, leave_deployment=bool(sensor.permanent_host)
                )

            # Step 4: Contexts
            created = await self.context_service.process_platform_deleted(platform_id, when, overrides)
            logger.info(
                f"Deleted platform {platform_id}; released {len(overrides)} sensor(s), "
                f"{len(created)} context(s) re-versioned"
            )

    async def process_deployment_deleted(
        self,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """
        Remove every trace of a deleted deployment from the hosting tree.

        Returns:
            Counts of unhosted, unshared and deleted platforms, released
            sensors and re-versioned contexts
        """
        when = when or _now()
        with log_context(deployment_id=deployment_id, operation="process_deployment_deleted"):
            owned = await self.platform_repo.list(owner_deployment=deployment_id)
            owned_ids = [p.id for p in owned]

            # Step 1: Platforms of other deployments hosted on ours
            foreign_children = [
                p for p in await self.platform_repo.list(hosted_by_any=owned_ids)
                if p.owner_deployment != deployment_id
            ] if owned_ids else []
            for platform in foreign_children:
                await self.unhost_platform(platform.id, when)

            # Step 2: Platforms shared with the deployment
            shared = [
                p for p in await self.platform_repo.list(in_deployment=deployment_id)
                if p.owner_deployment != deployment_id
            ]
            for platform in shared:
                await self.platform_repo.update(
                    platform.id,
                    {"in_deployments": [d for d in platform.in_deployments if d != deployment_id]},
                )

            # Step 3: Sensors
            overrides: Dict[str, ContextToAdd] = {}
            for sensor in await self.sensor_repo.list(has_deployment=deployment_id):
                overrides[sensor.id] = await self._release_sensor(sensor, leave_deployment=True)
            if owned_ids:
                for sensor in await self.sensor_repo.list(hosted_by_any=owned_ids):
                    if sensor.id not in overrides:
                        overrides[sensor.id] = await self._release_sensor(sensor, leave_deployment=False)

            # Step 4: Our own platforms
            for platform_id in owned_ids:
                await self.platform_repo.soft_delete(platform_id)
            await self.permanent_host_repo.deregister_platforms(owned_ids)

            # Step 5: Contexts
            created = await self.context_service.process_deployment_deleted(
                deployment_id, when, overrides
            )

            summary = {
                "platforms_unhosted": len(foreign_children),
                "platforms_unshared": len(shared),
                "platforms_deleted": len(owned_ids),
                "sensors_released": len(overrides),
                "contexts_created": len(created),
            }
            log_checkpoint("deployment_cleared", summary)
            return summary

    async def process_deployment_made_private(
        self,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """
        Detach everything of other deployments from a deployment gone private.

        Platforms hosted directly on the deployment's own platforms are
        unhosted unless they are owned by or shared with it. Sensors of
        other deployments hosted on its platforms without the platform being
        shared with them are unhosted too. Affected live contexts are
        re-versioned.

        Raises:
            DeploymentNotFound: The deployment does not exist
            DeploymentIsPublic: The deployment is still public
        """
        when = when or _now()
        with log_context(deployment_id=deployment_id, operation="process_deployment_made_private"):
            deployment = await self.lookup_service.get_deployment(deployment_id)
            if deployment.public:
                raise DeploymentIsPublic(f"Deployment '{deployment_id}' is still public.")

            owned = {p.id: p for p in await self.platform_repo.list(owner_deployment=deployment_id)}

            # Step 1: Platforms of other deployments hosted on ours
            foreign_children = [
                p for p in await self.platform_repo.list(hosted_by_any=list(owned))
                if not p.is_in_deployment(deployment_id)
            ] if owned else []
            for platform in _by_depth(foreign_children):
                await self._detach_from_host(platform.id)

            # Step 2: Sensors of other deployments hosted on ours
            overrides: Dict[str, ContextToAdd] = {}
            if owned:
                for sensor in await self.sensor_repo.list(hosted_by_any=list(owned)):
                    if not owned[sensor.is_hosted_by].is_in_deployment(sensor.has_deployment):
                        overrides[sensor.id] = await self._release_sensor(sensor, leave_deployment=False)

            # Step 3: Contexts
            visible = [p.id for p in await self.platform_repo.list(in_deployment=deployment_id)]
            created = await self.context_service.process_deployment_made_private(
                deployment_id,
                [p.id for p in foreign_children],
                visible,
                when,
                overrides,
            )

            summary = {
                "platforms_unhosted": len(foreign_children),
                "sensors_released": len(overrides),
                "contexts_created": len(created),
            }
            log_checkpoint("deployment_made_private", summary)
            return summary


__all__ = ["PlatformService"]
