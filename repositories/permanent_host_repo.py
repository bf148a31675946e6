# ============================================================================
# PERMANENT HOST REPOSITORY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Permanent host registry access
# PURPOSE: Database access for permanent_hosts table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Permanent Host Repository

Lookup by id or registration key, plus the updates registration and
platform/sensor deletion make (registered_as, location sensor pointer).
"""

import logging
from typing import Any, Dict, Optional, Sequence

from psycopg import sql

from core.errors import PermanentHostAlreadyExists
from core.models import PermanentHost
from .base import BaseRepository, id_list
from .database import TABLE_PERMANENT_HOSTS

logger = logging.getLogger(__name__)


class PermanentHostRepository(BaseRepository):
    """Repository for PermanentHost entities."""

    TABLE = TABLE_PERMANENT_HOSTS
    MODEL = PermanentHost

    async def create(self, host: PermanentHost) -> PermanentHost:
        # Unique violations cover both the id and the registration key
        with self._error_context(
            "create permanent host",
            host.id,
            conflict=PermanentHostAlreadyExists,
            conflict_message=f"Permanent host '{host.id}' or its registration key already exists.",
        ):
            stored = await self._insert(host)
            logger.debug(f"Created permanent host {host.id}")
            return stored

    async def get(self, host_id: str) -> Optional[PermanentHost]:
        with self._error_context("get permanent host", host_id):
            return await self._fetch_one(
                sql.SQL(
                    "SELECT * FROM {} WHERE id = %s AND status = 'active'"
                ).format(TABLE_PERMANENT_HOSTS),
                (host_id,),
            )

    async def get_by_registration_key(self, registration_key: str) -> Optional[PermanentHost]:
        with self._error_context("get permanent host by key"):
            return await self._fetch_one(
                sql.SQL(
                    "SELECT * FROM {} WHERE registration_key = %s AND status = 'active'"
                ).format(TABLE_PERMANENT_HOSTS),
                (registration_key,),
            )

    async def update(self, host_id: str, updates: Dict[str, Any]) -> Optional[PermanentHost]:
        with self._error_context("update permanent host", host_id):
            return await self._update_by_id(host_id, updates)

    async def deregister_platforms(self, platform_ids: Sequence[str]) -> int:
        """Clear registered_as on hosts registered as any of the platforms."""
        if not platform_ids:
            return 0
        with self._error_context("deregister permanent hosts"):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("""
                    UPDATE {}
                    SET registered_as = NULL, updated_at = NOW()
                    WHERE registered_as = ANY(%s) AND status = 'active'
                    """).format(TABLE_PERMANENT_HOSTS),
                    (id_list(platform_ids),),
                )
                if result.rowcount:
                    logger.info(f"Deregistered {result.rowcount} permanent host(s)")
                return result.rowcount

    async def clear_update_location_with_sensor(self, sensor_id: str) -> int:
        """Detach every permanent host whose location follows the sensor."""
        with self._error_context("clear permanent host location sensor", sensor_id):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("""
                    UPDATE {}
                    SET update_location_with_sensor = NULL, updated_at = NOW()
                    WHERE update_location_with_sensor = %s AND status = 'active'
                    """).format(TABLE_PERMANENT_HOSTS),
                    (sensor_id,),
                )
                return result.rowcount


__all__ = ["PermanentHostRepository"]
