# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the sensor context service.
"""

from core.config.defaults import (
    DatabaseDefaults,
    ContextDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "DatabaseDefaults",
    "ContextDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
