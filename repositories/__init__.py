# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Database access layer
# PURPOSE: CRUD and hierarchy queries for sensor context entities
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for sensor context entities.
Uses psycopg3 async with connection pooling.

Usage:
    from repositories import ContextRepository, init_pool

    pool = await init_pool()
    context_repo = ContextRepository(pool)
    live = await context_repo.get_live(sensor_id)
"""

from .database import init_pool, close_pool
from .base import BaseRepository
from .context_repo import ContextRepository
from .sensor_repo import SensorRepository
from .platform_repo import PlatformRepository
from .permanent_host_repo import PermanentHostRepository
from .deployment_repo import DeploymentRepository, VocabularyRepository
from .unknown_sensor_repo import UnknownSensorRepository

__all__ = [
    "init_pool",
    "close_pool",
    "BaseRepository",
    "ContextRepository",
    "SensorRepository",
    "PlatformRepository",
    "PermanentHostRepository",
    "DeploymentRepository",
    "VocabularyRepository",
    "UnknownSensorRepository",
]
