# ============================================================================
# UNKNOWN SENSOR REPOSITORY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Unknown sensor sink
# PURPOSE: Count observations from sensors that have no context
# CREATED: 19 OCT 2026
# ============================================================================
"""
Unknown Sensor Repository

upsert() is a single INSERT ... ON CONFLICT statement, so concurrent
observations from the same unknown sensor each increment the counter.
"""

import logging
from typing import Any, Dict, List

from psycopg import sql
from psycopg.types.json import Json

from core.models import UnknownSensor
from .base import BaseRepository
from .database import TABLE_UNKNOWN_SENSORS

logger = logging.getLogger(__name__)


class UnknownSensorRepository(BaseRepository):
    """Repository for UnknownSensor markers."""

    TABLE = TABLE_UNKNOWN_SENSORS
    MODEL = UnknownSensor
    JSON_COLUMNS = ("last_observation",)

    async def upsert(self, sensor_id: str, last_observation: Dict[str, Any]) -> UnknownSensor:
        """Record one more observation from an unknown sensor."""
        with self._error_context("record unknown sensor", sensor_id):
            stored = await self._fetch_one(
                sql.SQL("""
                INSERT INTO {table} AS u (id, n_observations, last_observation, created_at, updated_at)
                VALUES (%(id)s, 1, %(obs)s, NOW(), NOW())
                ON CONFLICT (id) DO UPDATE SET
                    n_observations = u.n_observations + 1,
                    last_observation = EXCLUDED.last_observation,
                    updated_at = NOW()
                RETURNING *
                """).format(table=TABLE_UNKNOWN_SENSORS),
                {"id": sensor_id, "obs": Json(last_observation)},
            )
            logger.debug(f"Unknown sensor {sensor_id} seen {stored.n_observations} time(s)")
            return stored

    async def list(self, limit: int = 100) -> List[UnknownSensor]:
        """Unknown sensors, most frequently seen first."""
        with self._error_context("list unknown sensors"):
            return await self._fetch_all(
                sql.SQL("""
                SELECT * FROM {}
                ORDER BY n_observations DESC, id
                LIMIT %s
                """).format(TABLE_UNKNOWN_SENSORS),
                (limit,),
            )

    async def delete(self, sensor_id: str) -> bool:
        with self._error_context("delete unknown sensor", sensor_id):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("DELETE FROM {} WHERE id = %s").format(TABLE_UNKNOWN_SENSORS),
                    (sensor_id,),
                )
                return result.rowcount > 0


__all__ = ["UnknownSensorRepository"]
