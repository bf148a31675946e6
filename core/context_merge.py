# ============================================================================
# CONTEXT MERGE ENGINE
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Pure merge of a context payload into an observation
# PURPOSE: Fill in observation fields from a context without ever
#          overwriting what the observation already carries
# CREATED: 19 OCT 2026
# ============================================================================
"""
Context Merge Engine

merge(observation, to_add) -> new observation dict. Pure and total: the
input is deep-copied, nothing is mutated, nothing raises for a well-formed
ContextToAdd. A missing payload returns the observation unchanged.

Simple fields (in_deployments, hosted_by_path) are copied when absent.

Complex fields are merged in three passes, in ConfigField order:

    1. fields with a plain value and no rules take the value
    2. fields with rules: every rule whose predicate matches the merged
       observation so far assigns its value; the last match wins
    3. fields with both a value and rules, where no rule matched, fall
       back to the value

A field already present on the incoming observation is skipped in every
pass. `unit` lives on has_result.unit rather than at the top level.

Predicates are partial: every key in the predicate must be present with an
equal value; nested dicts are matched partially in turn.
"""

import copy
from typing import Any, Dict, Mapping, Optional, Set

from core.contracts import ConfigField
from core.models.context import ContextToAdd

SIMPLE_FIELDS = ("in_deployments", "hosted_by_path")


# ============================================================================
# PREDICATES
# ============================================================================

def matches(predicate: Mapping[str, Any], target: Any) -> bool:
    """
    Partial structural match of predicate against target.

    Example:
        matches({"has_result": {"unit": "kelvin"}},
                {"has_result": {"value": 3, "unit": "kelvin"}})  -> True
    """
    if not isinstance(target, Mapping):
        return False
    for key, expected in predicate.items():
        if key not in target:
            return False
        actual = target[key]
        if isinstance(expected, Mapping):
            if not matches(expected, actual):
                return False
        elif actual != expected:
            return False
    return True


# ============================================================================
# FIELD ACCESS
# ============================================================================

def _has_field(observation: Mapping[str, Any], config_field: ConfigField) -> bool:
    if config_field == ConfigField.UNIT:
        result = observation.get("has_result")
        return isinstance(result, Mapping) and result.get("unit") is not None
    return observation.get(config_field.value) is not None


def _assign(merged: Dict[str, Any], config_field: ConfigField, value: Any) -> None:
    value = copy.deepcopy(value)
    if config_field == ConfigField.UNIT:
        result = merged.get("has_result")
        if result is None:
            result = merged["has_result"] = {}
        if isinstance(result, dict):
            result["unit"] = value
        return
    merged[config_field.value] = value


# ============================================================================
# MERGE
# ============================================================================

def merge(observation: Mapping[str, Any], to_add: Optional[ContextToAdd]) -> Dict[str, Any]:
    """
    Merge a context payload into an observation.

    Args:
        observation: Observation as a plain dict
        to_add: The context payload, or None when no context applies

    Returns:
        A new dict; the input is left untouched.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(observation))
    if to_add is None:
        return merged

    # Simple fields
    for name in SIMPLE_FIELDS:
        value = getattr(to_add, name)
        if value and merged.get(name) is None:
            merged[name] = list(value)

    complex_fields = to_add.complex_fields()
    already_present: Set[ConfigField] = {
        config_field for config_field in complex_fields if _has_field(observation, config_field)
    }
    pending = {k: v for k, v in complex_fields.items() if k not in already_present}

    # Pass 1: plain values without rules
    for config_field, field in pending.items():
        if field.value is not None and not field.ifs:
            _assign(merged, config_field, field.value)

    # Pass 2: conditional rules against the merged observation so far
    matched: Set[ConfigField] = set()
    for config_field, field in pending.items():
        for rule in field.ifs:
            if matches(rule.if_, merged):
                _assign(merged, config_field, rule.value)
                matched.add(config_field)

    # Pass 3: fallback values where no rule matched
    for config_field, field in pending.items():
        if field.ifs and field.value is not None and config_field not in matched:
            _assign(merged, config_field, field.value)

    return merged


__all__ = ["merge", "matches", "SIMPLE_FIELDS"]
