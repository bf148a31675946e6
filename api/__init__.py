# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for the sensor context services
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the sensor context service.
"""

from .routes import router, set_services, install_error_handlers
from .schemas import (
    SensorCreate,
    SensorUpdate,
    PlatformCreate,
    PlatformUpdate,
    RegisterRequest,
)

__all__ = [
    "router",
    "set_services",
    "install_error_handlers",
    "SensorCreate",
    "SensorUpdate",
    "PlatformCreate",
    "PlatformUpdate",
    "RegisterRequest",
]
