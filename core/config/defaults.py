# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for the database layer and context rules
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for the database pool and the sensor/platform rules.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class DatabaseDefaults:
    """
    Defaults for the PostgreSQL layer.

    Connection details themselves come from DATABASE_URL / POSTGRES_*
    (see repositories.database); this only covers pool sizing and schema.
    """
    schema: str = "sensorctx"
    pool_min_size: int = 2
    pool_max_size: int = 10

    @classmethod
    def from_env(cls) -> "DatabaseDefaults":
        """Create from environment variables."""
        return cls(
            schema=os.getenv("SENSORCTX_DB_SCHEMA", "sensorctx"),
            pool_min_size=int(os.getenv("SENSORCTX_DB_POOL_MIN", 2)),
            pool_max_size=int(os.getenv("SENSORCTX_DB_POOL_MAX", 10)),
        )


@dataclass(frozen=True)
class ContextDefaults:
    """
    Defaults for identifiers and context rules.
    """
    # Location observations may run slightly ahead of the server clock
    location_future_tolerance_seconds: int = 5

    # Identifiers
    registration_key_length: int = 10
    platform_id_suffix_length: int = 3
    max_platform_id_length: int = 48
    max_sensor_id_length: int = 44

    @classmethod
    def from_env(cls) -> "ContextDefaults":
        """Create from environment variables."""
        return cls(
            location_future_tolerance_seconds=int(
                os.getenv("SENSORCTX_LOCATION_FUTURE_TOLERANCE_SECONDS", 5)
            ),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    database: DatabaseDefaults = field(default_factory=DatabaseDefaults)
    context: ContextDefaults = field(default_factory=ContextDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            database=DatabaseDefaults.from_env(),
            context=ContextDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DatabaseDefaults",
    "ContextDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
