# ============================================================================
# PLATFORM REPOSITORY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Platform CRUD and hierarchy queries
# PURPOSE: Database access for platforms table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Platform Repository

CRUD operations for platforms plus the hierarchy queries the hosting
tree needs. Descendant lookups use JSONB containment on hosted_by_path,
served by the GIN index idx_platforms_hosted_by_path.
All SQL uses psycopg sql.SQL composition for injection safety.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from psycopg import sql
from psycopg.types.json import Json

from core.errors import PlatformAlreadyExists
from core.models import Platform
from .base import BaseRepository, id_list
from .database import TABLE_PLATFORMS

logger = logging.getLogger(__name__)


class PlatformRepository(BaseRepository):
    """Repository for Platform entities."""

    TABLE = TABLE_PLATFORMS
    MODEL = Platform
    JSON_COLUMNS = ("in_deployments", "hosted_by_path", "location")

    async def create(self, platform: Platform) -> Platform:
        with self._error_context(
            "create platform",
            platform.id,
            conflict=PlatformAlreadyExists,
            conflict_message=f"Platform '{platform.id}' already exists.",
        ):
            stored = await self._insert(platform)
            logger.debug(f"Created platform {platform.id}")
            return stored

    async def get(self, platform_id: str) -> Optional[Platform]:
        with self._error_context("get platform", platform_id):
            return await self._fetch_one(
                sql.SQL("SELECT * FROM {} WHERE id = %s AND status = 'active'").format(TABLE_PLATFORMS),
                (platform_id,),
            )

    async def get_many(self, platform_ids: Sequence[str]) -> List[Platform]:
        """Active platforms among the ids (order not guaranteed)."""
        if not platform_ids:
            return []
        with self._error_context("get platforms"):
            return await self._fetch_all(
                sql.SQL(
                    "SELECT * FROM {} WHERE id = ANY(%s) AND status = 'active'"
                ).format(TABLE_PLATFORMS),
                (id_list(platform_ids),),
            )

    async def update(self, platform_id: str, updates: Dict[str, Any]) -> Optional[Platform]:
        """
        Apply column updates to an active platform.

        Returns:
            Updated platform, or None if no active platform has the id
        """
        with self._error_context("update platform", platform_id):
            return await self._update_by_id(platform_id, updates)

    async def soft_delete(self, platform_id: str) -> bool:
        with self._error_context("delete platform", platform_id):
            deleted = await self._soft_delete_by_id(platform_id)
            if deleted:
                logger.debug(f"Soft deleted platform {platform_id}")
            return deleted

    async def list(
        self,
        owner_deployment: Optional[str] = None,
        in_deployment: Optional[str] = None,
        is_hosted_by: Optional[str] = None,
        hosted_by_any: Optional[Sequence[str]] = None,
        limit: int = 1000,
    ) -> List[Platform]:
        """
        List active platforms with optional filters.

        Args:
            owner_deployment: Platforms owned by this deployment
            in_deployment: Platforms visible in this deployment (owned or shared)
            is_hosted_by: Platforms directly hosted on this platform
            hosted_by_any: Platforms directly hosted on any of these platforms
        """
        conditions = [sql.SQL("status = 'active'")]
        params: List[Any] = []

        if owner_deployment is not None:
            conditions.append(sql.SQL("owner_deployment = %s"))
            params.append(owner_deployment)
        if in_deployment is not None:
            conditions.append(sql.SQL("in_deployments @> %s"))
            params.append(Json([in_deployment]))
        if is_hosted_by is not None:
            conditions.append(sql.SQL("is_hosted_by = %s"))
            params.append(is_hosted_by)
        if hosted_by_any is not None:
            conditions.append(sql.SQL("is_hosted_by = ANY(%s)"))
            params.append(id_list(hosted_by_any))

        params.append(limit)
        with self._error_context("list platforms"):
            return await self._fetch_all(
                sql.SQL("SELECT * FROM {} WHERE {} ORDER BY id LIMIT %s").format(
                    TABLE_PLATFORMS, sql.SQL(" AND ").join(conditions)
                ),
                params,
            )

    async def list_descendants(self, platform_id: str) -> List[Platform]:
        """
        Every active platform below this one, at any depth.

        Ordered by depth so parents come before their children.
        """
        with self._error_context("list descendants", platform_id):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                WHERE status = 'active'
                  AND hosted_by_path @> %s
                ORDER BY jsonb_array_length(hosted_by_path), id
                """).format(TABLE_PLATFORMS),
                (Json([platform_id]),),
            )

    async def list_for_location_update(
        self,
        sensor_id: str,
        deployment_ids: Sequence[str],
    ) -> List[Platform]:
        """Platforms whose location follows this sensor in any of the deployments."""
        with self._error_context("list platforms for location update", sensor_id):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                WHERE status = 'active'
                  AND update_location_with_sensor = %s
                  AND in_deployments ?| %s
                ORDER BY id
                """).format(TABLE_PLATFORMS),
                (sensor_id, id_list(deployment_ids)),
            )

    async def clear_update_location_with_sensor(self, sensor_id: str) -> int:
        """Detach every platform whose location follows the sensor."""
        with self._error_context("clear platform location sensor", sensor_id):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("""
                    UPDATE {}
                    SET update_location_with_sensor = NULL, updated_at = NOW()
                    WHERE update_location_with_sensor = %s AND status = 'active'
                    """).format(TABLE_PLATFORMS),
                    (sensor_id,),
                )
                return result.rowcount


__all__ = ["PlatformRepository"]
