# ============================================================================
# CONTEXT REPOSITORY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Context version storage
# PURPOSE: Database access for contexts table (temporal versions per sensor)
# CREATED: 19 OCT 2026
# ============================================================================
"""
Context Repository

Stores context versions. The partial unique index
idx_contexts_live_sensor rejects a second live (end_date IS NULL) row for
the same sensor; that violation surfaces as ContextAlreadyExists.

Ending a live version and creating its successor are two statements, so
two concurrent supersedes race on the insert and the loser gets the
conflict.
"""

import logging
from datetime import datetime
from typing import List, Optional

from psycopg import sql
from psycopg.types.json import Json

from core.errors import ContextAlreadyExists
from core.models import Context
from .base import BaseRepository
from .database import TABLE_CONTEXTS

logger = logging.getLogger(__name__)


class ContextRepository(BaseRepository):
    """Repository for Context versions."""

    TABLE = TABLE_CONTEXTS
    MODEL = Context
    JSON_COLUMNS = ("to_add",)

    async def create(self, context: Context) -> Context:
        """
        Insert a context version.

        Raises:
            ContextAlreadyExists: The sensor already has a live context
                (or the id is taken)
        """
        with self._error_context(
            "create context",
            context.sensor,
            conflict=ContextAlreadyExists,
            conflict_message=f"Sensor '{context.sensor}' already has a live context.",
        ):
            stored = await self._insert(context)
            logger.debug(f"Created context {context.id} for sensor {context.sensor}")
            return stored

    async def get(self, context_id: str) -> Optional[Context]:
        with self._error_context("get context", context_id):
            return await self._fetch_one(
                sql.SQL("SELECT * FROM {} WHERE id = %s").format(TABLE_CONTEXTS),
                (context_id,),
            )

    async def get_live(self, sensor_id: str) -> Optional[Context]:
        """The context of a sensor with no end_date, if any."""
        with self._error_context("get live context", sensor_id):
            return await self._fetch_one(
                sql.SQL(
                    "SELECT * FROM {} WHERE sensor = %s AND end_date IS NULL"
                ).format(TABLE_CONTEXTS),
                (sensor_id,),
            )

    async def end_live(self, sensor_id: str, end_date: datetime) -> Optional[Context]:
        """
        Set end_date on the live context of a sensor.

        Returns:
            The ended context, or None when the sensor had no live context
        """
        with self._error_context("end live context", sensor_id):
            ended = await self._fetch_one(
                sql.SQL("""
                UPDATE {}
                SET end_date = %s
                WHERE sensor = %s AND end_date IS NULL
                RETURNING *
                """).format(TABLE_CONTEXTS),
                (end_date, sensor_id),
            )
            if ended:
                logger.debug(f"Ended context {ended.id} for sensor {sensor_id}")
            return ended

    async def get_at(self, sensor_id: str, timestamp: datetime) -> Optional[Context]:
        """The context whose [start_date, end_date) contains timestamp."""
        with self._error_context("get context at time", sensor_id):
            return await self._fetch_one(
                sql.SQL("""
                SELECT * FROM {}
                WHERE sensor = %s
                  AND start_date <= %s
                  AND (end_date IS NULL OR end_date > %s)
                ORDER BY start_date DESC
                LIMIT 1
                """).format(TABLE_CONTEXTS),
                (sensor_id, timestamp, timestamp),
            )

    async def list_for_sensor(self, sensor_id: str, limit: int = 100) -> List[Context]:
        """Every version for a sensor, newest first."""
        with self._error_context("list contexts", sensor_id):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                WHERE sensor = %s
                ORDER BY start_date DESC
                LIMIT %s
                """).format(TABLE_CONTEXTS),
                (sensor_id, limit),
            )

    async def list_live_for_platform(self, platform_id: str) -> List[Context]:
        """Live contexts whose hosted_by_path passes through the platform."""
        with self._error_context("list live contexts for platform", platform_id):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                WHERE end_date IS NULL
                  AND to_add @> %s
                ORDER BY sensor
                """).format(TABLE_CONTEXTS),
                (Json({"hosted_by_path": [platform_id]}),),
            )

    async def list_live_for_deployment(self, deployment_id: str) -> List[Context]:
        """Live contexts whose in_deployments includes the deployment."""
        with self._error_context("list live contexts for deployment", deployment_id):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                WHERE end_date IS NULL
                  AND to_add @> %s
                ORDER BY sensor
                """).format(TABLE_CONTEXTS),
                (Json({"in_deployments": [deployment_id]}),),
            )


__all__ = ["ContextRepository"]
