# ============================================================================
# SENSOR REPOSITORY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Sensor CRUD operations
# PURPOSE: Database access for sensors table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Sensor Repository

Sensors are mutated in place and soft deleted; reads only ever see
status = 'active' rows.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from psycopg import sql

from core.errors import SensorAlreadyExists
from core.models import Sensor
from .base import BaseRepository, id_list
from .database import TABLE_SENSORS

logger = logging.getLogger(__name__)


class SensorRepository(BaseRepository):
    """Repository for Sensor entities."""

    TABLE = TABLE_SENSORS
    MODEL = Sensor
    JSON_COLUMNS = ("initial_config", "current_config")

    async def create(self, sensor: Sensor) -> Sensor:
        with self._error_context(
            "create sensor",
            sensor.id,
            conflict=SensorAlreadyExists,
            conflict_message=f"Sensor '{sensor.id}' already exists.",
        ):
            stored = await self._insert(sensor)
            logger.debug(f"Created sensor {sensor.id}")
            return stored

    async def get(self, sensor_id: str) -> Optional[Sensor]:
        with self._error_context("get sensor", sensor_id):
            return await self._fetch_one(
                sql.SQL("SELECT * FROM {} WHERE id = %s AND status = 'active'").format(TABLE_SENSORS),
                (sensor_id,),
            )

    async def update(self, sensor_id: str, updates: Dict[str, Any]) -> Optional[Sensor]:
        """
        Apply column updates to an active sensor.

        Returns:
            Updated sensor, or None if no active sensor has the id
        """
        with self._error_context("update sensor", sensor_id):
            return await self._update_by_id(sensor_id, updates)

    async def soft_delete(self, sensor_id: str) -> bool:
        with self._error_context("delete sensor", sensor_id):
            deleted = await self._soft_delete_by_id(sensor_id)
            if deleted:
                logger.debug(f"Soft deleted sensor {sensor_id}")
            return deleted

    async def list(
        self,
        permanent_host: Optional[str] = None,
        has_deployment: Optional[str] = None,
        is_hosted_by: Optional[str] = None,
        hosted_by_any: Optional[Sequence[str]] = None,
        limit: int = 1000,
    ) -> List[Sensor]:
        """
        List active sensors with optional filters.

        Args:
            permanent_host: Sensors owned by this permanent host
            has_deployment: Sensors in this deployment
            is_hosted_by: Sensors directly hosted on this platform
            hosted_by_any: Sensors directly hosted on any of these platforms
        """
        conditions = [sql.SQL("status = 'active'")]
        params: List[Any] = []

        if permanent_host is not None:
            conditions.append(sql.SQL("permanent_host = %s"))
            params.append(permanent_host)
        if has_deployment is not None:
            conditions.append(sql.SQL("has_deployment = %s"))
            params.append(has_deployment)
        if is_hosted_by is not None:
            conditions.append(sql.SQL("is_hosted_by = %s"))
            params.append(is_hosted_by)
        if hosted_by_any is not None:
            conditions.append(sql.SQL("is_hosted_by = ANY(%s)"))
            params.append(id_list(hosted_by_any))

        params.append(limit)
        with self._error_context("list sensors"):
            return await self._fetch_all(
                sql.SQL("SELECT * FROM {} WHERE {} ORDER BY id LIMIT %s").format(
                    TABLE_SENSORS, sql.SQL(" AND ").join(conditions)
                ),
                params,
            )


__all__ = ["SensorRepository"]
