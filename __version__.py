# ============================================================================
# VERSION - SENSOR CONTEXT SERVICE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# ============================================================================
"""
Version information for the sensor context service.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch.build
# Criteria for 0.1 - contexts, hosting hierarchy and registration all work end to end
__version__ = "0.1.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Sensor Context"
