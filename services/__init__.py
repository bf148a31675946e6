# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Business logic layer
# PURPOSE: Context store, hosting tree, sensor lifecycle, registration and
#          observation enrichment
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Business logic for sensor context.
Services coordinate between repositories; ContextService is shared by all
the others so every re-versioning goes through one place.

Usage:
    from services import build_services

    services = build_services(pool)
    sensor = await services["sensor"].create_sensor(sensor)
"""

from typing import Any, Dict

from psycopg_pool import AsyncConnectionPool

from .context_service import ContextService, build_context_to_add
from .lookup_service import LookupService
from .sensor_guard import check_sensor_create, check_sensor_update
from .sensor_service import SensorService
from .platform_service import PlatformService
from .registration_service import RegistrationService
from .observation_service import ObservationService


def build_services(pool: AsyncConnectionPool) -> Dict[str, Any]:
    """Wire every service against one pool."""
    context_service = ContextService(pool)
    lookup_service = LookupService(pool)
    platform_service = PlatformService(pool, context_service, lookup_service)
    return {
        "context": context_service,
        "lookup": lookup_service,
        "sensor": SensorService(pool, context_service, lookup_service),
        "platform": platform_service,
        "registration": RegistrationService(pool, platform_service, context_service, lookup_service),
        "observation": ObservationService(pool, context_service),
    }


__all__ = [
    "ContextService",
    "LookupService",
    "SensorService",
    "PlatformService",
    "RegistrationService",
    "ObservationService",
    "build_context_to_add",
    "build_services",
    "check_sensor_create",
    "check_sensor_update",
]
