# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Foundation - Core enums
# PURPOSE: Status and field enums shared by models, repositories and services
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EntityStatus, VocabularyKind, ConfigField, HostedEntityType
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the sensor context service.

These enums cross every boundary:
- SQL (PostgreSQL enum types and filters)
- Python (models, services)
- HTTP (API responses)
"""

from enum import Enum
from typing import Tuple


# ============================================================================
# STATUS ENUMS
# ============================================================================

class EntityStatus(str, Enum):
    """
    Soft-delete marker stored on every catalog entity.

    Every read path filters on ACTIVE explicitly.
    """
    ACTIVE = "active"
    DELETED = "deleted"


class VocabularyKind(str, Enum):
    """Kinds of vocabulary entity a sensor config may reference."""
    DISCIPLINE = "discipline"
    OBSERVABLE_PROPERTY = "observable_property"
    UNIT = "unit"
    PROCEDURE = "procedure"
    FEATURE_OF_INTEREST = "feature_of_interest"


# ============================================================================
# CONTEXT FIELDS
# ============================================================================

class ConfigField(str, Enum):
    """
    Complex context fields, in merge order.

    The order matters: observed_property is merged first so that the
    conditional rules of every later field can match against it.
    """
    OBSERVED_PROPERTY = "observed_property"
    HAS_FEATURE_OF_INTEREST = "has_feature_of_interest"
    USED_PROCEDURES = "used_procedures"
    DISCIPLINES = "disciplines"
    UNIT = "unit"

    def is_list(self) -> bool:
        """Whether the field holds a list of vocabulary ids."""
        return self in (ConfigField.USED_PROCEDURES, ConfigField.DISCIPLINES)

    def vocabulary_kind(self) -> VocabularyKind:
        """The vocabulary an id stored in this field must belong to."""
        return {
            ConfigField.OBSERVED_PROPERTY: VocabularyKind.OBSERVABLE_PROPERTY,
            ConfigField.HAS_FEATURE_OF_INTEREST: VocabularyKind.FEATURE_OF_INTEREST,
            ConfigField.USED_PROCEDURES: VocabularyKind.PROCEDURE,
            ConfigField.DISCIPLINES: VocabularyKind.DISCIPLINE,
            ConfigField.UNIT: VocabularyKind.UNIT,
        }[self]

    @classmethod
    def merge_order(cls) -> Tuple["ConfigField", ...]:
        return tuple(cls)


class HostedEntityType(str, Enum):
    """Node types in a nested hosting tree."""
    PLATFORM = "platform"
    SENSOR = "sensor"
