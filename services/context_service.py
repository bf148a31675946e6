# ============================================================================
# CONTEXT SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Context version store
# PURPOSE: Create, end, supersede and look up context versions; re-version
#          live contexts after hosting-tree and deployment changes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Context Service

The versioned context store for sensors:

- create_context / end_live_context / replace_live_context keep at most
  one live version per sensor. The repository's partial unique index
  rejects a concurrent second live version with ContextAlreadyExists;
  callers retry.
- get_context_at resolves the version valid at an instant, for
  out-of-order observations.
- process_* methods re-version every live context affected by a change in
  the hosting tree or in deployment sharing. Each supersede ends the old
  version and creates the new one at the same instant.

Ending and creating are separate writes with no transaction around them.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from psycopg_pool import AsyncConnectionPool

from core.errors import ContextNotFound, InvalidContext
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import Context, ContextToAdd, Platform, Sensor
from repositories import ContextRepository

logger = get_logger(__name__, ComponentType.SERVICE)


def build_context_to_add(
    sensor: Sensor,
    platform: Optional[Platform] = None,
    ancestors: Sequence[Platform] = (),
) -> ContextToAdd:
    """
    Derive the payload a sensor's live context should carry.

    in_deployments starts with the sensor's own deployment followed by the
    other deployments the host platform and its ancestors (nearest first)
    are in. hosted_by_path is the host's ancestor path plus the host itself.
    """
    in_deployments = None
    if sensor.has_deployment:
        in_deployments = [sensor.has_deployment]
        for path_platform in ([platform, *ancestors] if platform is not None else []):
            in_deployments += [d for d in path_platform.in_deployments if d not in in_deployments]

    hosted_by_path = platform.path_for_children() if platform is not None else None

    return ContextToAdd.build(
        in_deployments=in_deployments,
        hosted_by_path=hosted_by_path,
        config=sensor.current_config,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ContextService:
    """Service for context versions."""

    def __init__(self, pool: AsyncConnectionPool):
        """
        Initialize context service.

        Args:
            pool: Database connection pool
        """
        self.pool = pool
        self.context_repo = ContextRepository(pool)

    # ----------------------------------------------------------------
    # Store operations
    # ----------------------------------------------------------------

    async def create_context(self, context: Context) -> Context:
        """
        Create a context version.

        Raises:
            InvalidContext: end_date is not after start_date
            ContextAlreadyExists: A live context already exists for the sensor
        """
        if context.end_date is not None and context.end_date <= context.start_date:
            raise InvalidContext("A context must end after it starts.")

        created = await self.context_repo.create(context)
        logger.debug(f"Context {created.id} created for sensor {created.sensor}")
        return created

    async def get_context(self, context_id: str) -> Context:
        context = await self.context_repo.get(context_id)
        if context is None:
            raise ContextNotFound(f"Context '{context_id}' not found.")
        return context

    async def get_live_context(self, sensor_id: str) -> Context:
        """
        The context of a sensor with no end date.

        Raises:
            ContextNotFound: The sensor has no live context
        """
        context = await self.context_repo.get_live(sensor_id)
        if context is None:
            raise ContextNotFound(f"Sensor '{sensor_id}' has no live context.")
        return context

    async def end_live_context(self, sensor_id: str, end_date: Optional[datetime] = None) -> Context:
        """
        Close the live context of a sensor.

        Raises:
            ContextNotFound: The sensor has no live context
        """
        ended = await self.context_repo.end_live(sensor_id, end_date or _now())
        if ended is None:
            raise ContextNotFound(f"Sensor '{sensor_id}' has no live context to end.")
        return ended

    async def get_context_at(self, sensor_id: str, timestamp: datetime) -> Context:
        """
        The context whose [start_date, end_date) contains timestamp.

        Raises:
            ContextNotFound: No context covers the instant
        """
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        context = await self.context_repo.get_at(sensor_id, timestamp)
        if context is None:
            raise ContextNotFound(
                f"Sensor '{sensor_id}' had no context at {timestamp.isoformat()}."
            )
        return context

    async def get_contexts_for_sensor(self, sensor_id: str, limit: int = 100) -> List[Context]:
        """Every version for a sensor, newest first."""
        return await self.context_repo.list_for_sensor(sensor_id, limit=limit)

    async def get_live_contexts_for_platform(self, platform_id: str) -> List[Context]:
        """Live contexts of every sensor hosted anywhere under the platform."""
        return await self.context_repo.list_live_for_platform(platform_id)

    async def replace_live_context(
        self,
        sensor_id: str,
        to_add: ContextToAdd,
        when: Optional[datetime] = None,
    ) -> Context:
        """
        End the sensor's live context (if any) and create a new one.

        The old version ends at exactly the instant the new one starts.
        """
        when = when or _now()
        ended = await self.context_repo.end_live(sensor_id, when)
        created = await self.create_context(Context(sensor=sensor_id, start_date=when, to_add=to_add))

        log_checkpoint("context_superseded", {
            "sensor": sensor_id,
            "ended": ended.id if ended else None,
            "created": created.id,
        })
        return created

    async def _supersede_all(
        self,
        updated: Dict[str, ContextToAdd],
        previous: Dict[str, Context],
        when: datetime,
    ) -> List[Context]:
        """Replace every live context whose payload actually changed."""
        created = []
        for sensor_id, to_add in updated.items():
            old = previous.get(sensor_id)
            if old is not None and old.to_add.comparable() == to_add.comparable():
                continue
            created.append(await self.replace_live_context(sensor_id, to_add, when))
        return created

    # ----------------------------------------------------------------
    # Re-versioning after hosting changes
    # ----------------------------------------------------------------

    async def process_platform_host_change(
        self,
        platform_id: str,
        new_ancestors: List[str],
        when: Optional[datetime] = None,
    ) -> List[Context]:
        """
        Re-version contexts under a platform whose ancestors changed.

        Each hosted_by_path keeps its part from the platform downwards and
        gets new_ancestors in front of it. An empty new_ancestors means the
        platform was unhosted.
        """
        when = when or _now()
        with log_context(platform_id=platform_id, operation="process_platform_host_change"):
            contexts = await self.context_repo.list_live_for_platform(platform_id)
            previous = {ctx.sensor: ctx for ctx in contexts}
            updated = {}
            for ctx in contexts:
                path = ctx.to_add.hosted_by_path or []
                if platform_id not in path:
                    continue
                new_path = list(new_ancestors) + path[path.index(platform_id):]
                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"hosted_by_path": new_path}, deep=True
                )

            created = await self._supersede_all(updated, previous, when)
            logger.info(f"Host change of {platform_id} re-versioned {len(created)} context(s)")
            return created

    async def process_platform_deleted(
        self,
        platform_id: str,
        when: Optional[datetime] = None,
        overrides: Optional[Dict[str, ContextToAdd]] = None,
    ) -> List[Context]:
        """
        Re-version contexts under a deleted platform.

        Paths drop everything at or above the platform, leaving sensors on
        their nearer ancestor. Sensors listed in overrides (those the
        deletion changed directly) get the given payload instead.
        """
        when = when or _now()
        overrides = dict(overrides or {})
        with log_context(platform_id=platform_id, operation="process_platform_deleted"):
            contexts = await self.context_repo.list_live_for_platform(platform_id)
            previous = {ctx.sensor: ctx for ctx in contexts}
            updated: Dict[str, ContextToAdd] = {}
            for ctx in contexts:
                if ctx.sensor in overrides:
                    continue
                path = ctx.to_add.hosted_by_path or []
                remaining = path[path.index(platform_id) + 1:] if platform_id in path else path
                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"hosted_by_path": remaining or None}, deep=True
                )

            for sensor_id, to_add in overrides.items():
                if sensor_id not in previous:
                    live = await self.context_repo.get_live(sensor_id)
                    if live is not None:
                        previous[sensor_id] = live
                updated[sensor_id] = to_add

            created = await self._supersede_all(updated, previous, when)
            logger.info(f"Deletion of {platform_id} re-versioned {len(created)} context(s)")
            return created

    async def process_platform_shared_with_deployment(
        self,
        platform_id: str,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> List[Context]:
        """Add the deployment to in_deployments of contexts under the platform."""
        when = when or _now()
        with log_context(platform_id=platform_id, deployment_id=deployment_id,
                         operation="process_platform_shared"):
            contexts = await self.context_repo.list_live_for_platform(platform_id)
            updated = {}
            for ctx in contexts:
                deployments = list(ctx.to_add.in_deployments or [])
                if deployment_id in deployments:
                    continue
                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"in_deployments": deployments + [deployment_id]}, deep=True
                )
            return await self._supersede_all(updated, {c.sensor: c for c in contexts}, when)

    async def process_platform_unshared_with_deployment(
        self,
        platform_id: str,
        deployment_id: str,
        when: Optional[datetime] = None,
    ) -> List[Context]:
        """
        Remove the deployment from in_deployments of contexts under the platform.

        The first entry is the sensor's own deployment and always stays.
        """
        when = when or _now()
        with log_context(platform_id=platform_id, deployment_id=deployment_id,
                         operation="process_platform_unshared"):
            contexts = await self.context_repo.list_live_for_platform(platform_id)
            updated = {}
            for ctx in contexts:
                deployments = list(ctx.to_add.in_deployments or [])
                if deployment_id not in deployments[1:]:
                    continue
                remaining = deployments[:1] + [d for d in deployments[1:] if d != deployment_id]
                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"in_deployments": remaining}, deep=True
                )
            return await self._supersede_all(updated, {c.sensor: c for c in contexts}, when)

    async def process_deployment_deleted(
        self,
        deployment_id: str,
        when: Optional[datetime] = None,
        overrides: Optional[Dict[str, ContextToAdd]] = None,
    ) -> List[Context]:
        """
        Re-version contexts after a deployment was deleted.

        Sensors in overrides get the given payload; every other live context
        listing the deployment has it removed from in_deployments.
        """
        when = when or _now()
        overrides = dict(overrides or {})
        with log_context(deployment_id=deployment_id, operation="process_deployment_deleted"):
            contexts = await self.context_repo.list_live_for_deployment(deployment_id)
            previous = {ctx.sensor: ctx for ctx in contexts}
            updated: Dict[str, ContextToAdd] = {}
            for ctx in contexts:
                if ctx.sensor in overrides:
                    continue
                remaining = [d for d in ctx.to_add.in_deployments or [] if d != deployment_id]
                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"in_deployments": remaining or None}, deep=True
                )

            for sensor_id, to_add in overrides.items():
                if sensor_id not in previous:
                    live = await self.context_repo.get_live(sensor_id)
                    if live is not None:
                        previous[sensor_id] = live
                updated[sensor_id] = to_add

            created = await self._supersede_all(updated, previous, when)
            logger.info(f"Deletion of deployment {deployment_id} re-versioned {len(created)} context(s)")
            return created

    async def process_deployment_made_private(
        self,
        deployment_id: str,
        detached_platform_ids: Sequence[str],
        visible_platform_ids: Sequence[str],
        when: Optional[datetime] = None,
        overrides: Optional[Dict[str, ContextToAdd]] = None,
    ) -> List[Context]:
        """
        Re-version contexts after a deployment stopped being public.

        Contexts under a detached platform keep their path from the last
        detached platform downwards. Sensors of other deployments also lose
        the deployment from in_deployments unless a platform still on their
        path is in it. Sensors in overrides get the given payload.
        """
        when = when or _now()
        overrides = dict(overrides or {})
        detached = list(detached_platform_ids)
        visible = set(visible_platform_ids)
        with log_context(deployment_id=deployment_id, operation="process_deployment_made_private"):
            previous: Dict[str, Context] = {}
            for platform_id in detached:
                for ctx in await self.context_repo.list_live_for_platform(platform_id):
                    previous.setdefault(ctx.sensor, ctx)

            updated: Dict[str, ContextToAdd] = {}
            for ctx in previous.values():
                if ctx.sensor in overrides:
                    continue
                path = ctx.to_add.hosted_by_path or []
                cut = max(path.index(p) for p in detached if p in path)
                new_path = path[cut:]

                deployments = list(ctx.to_add.in_deployments or [])
                if deployment_id in deployments[1:] and not visible.intersection(new_path):
                    deployments = deployments[:1] + [d for d in deployments[1:] if d != deployment_id]

                updated[ctx.sensor] = ctx.to_add.model_copy(
                    update={"hosted_by_path": new_path, "in_deployments": deployments or None},
                    deep=True,
                )

            for sensor_id, to_add in overrides.items():
                if sensor_id not in previous:
                    live = await self.context_repo.get_live(sensor_id)
                    if live is not None:
                        previous[sensor_id] = live
                updated[sensor_id] = to_add

            created = await self._supersede_all(updated, previous, when)
            logger.info(f"Deployment {deployment_id} made private; re-versioned {len(created)} context(s)")
            return created


__all__ = ["ContextService", "build_context_to_add"]
