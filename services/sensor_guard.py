# ============================================================================
# SENSOR RELATIONSHIP GUARD
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Pure validation of sensor relationship changes
# PURPOSE: Reject illegal combinations of permanent_host, has_deployment
#          and is_hosted_by before any write happens
# CREATED: 19 OCT 2026
# ============================================================================
"""
Sensor Relationship Guard

check_sensor_update(old, updates) raises the first violated rule as a
SensorRelationshipForbidden subclass naming the fields in conflict. A key
present in `updates` means the field is being set (possibly to None); an
absent key means the field is left alone.

Rules, checked in order:

    R1  a permanent-host sensor cannot be given a deployment directly;
        registration does that
    R2  permanent_host cannot change while the sensor is hosted or while
        it is being placed into a deployment
    R3  hosting needs a deployment and no permanent host
    R4  a sensor cannot be unhosted on its own; deleting the platform
        does that
    R5  switching deployment needs the host to change with it
    R6  leaving a deployment cannot leave the sensor hosted

Registration and platform deletion write the sensor row directly and do
not pass through here.
"""

from typing import Any, Mapping, Optional

from core.errors import (
    CannotChangePermanentHost,
    CannotDeployPermanentHostSensor,
    CannotHostPermanentHostSensor,
    CannotHostUndeployedSensor,
    CannotLeaveDeploymentWhileHosted,
    CannotSwitchDeploymentWhileHosted,
    CannotUnhostSensor,
)
from core.models import Sensor

PERMANENT_HOST = "permanent_host"
HAS_DEPLOYMENT = "has_deployment"
IS_HOSTED_BY = "is_hosted_by"


def _changes(old: Sensor, updates: Mapping[str, Any], name: str) -> bool:
    return name in updates and updates[name] != getattr(old, name)


def _effective(old: Sensor, updates: Mapping[str, Any], name: str) -> Optional[str]:
    return updates[name] if name in updates else getattr(old, name)


def check_sensor_update(old: Sensor, updates: Mapping[str, Any]) -> None:
    """
    Validate a proposed relationship change.

    Args:
        old: The sensor as stored (a blank Sensor for creation)
        updates: Proposed field values

    Raises:
        SensorRelationshipForbidden: A rule is violated
    """
    permanent_host = _effective(old, updates, PERMANENT_HOST)
    has_deployment = _effective(old, updates, HAS_DEPLOYMENT)
    is_hosted_by = _effective(old, updates, IS_HOSTED_BY)

    # R1
    if permanent_host and _changes(old, updates, HAS_DEPLOYMENT) and updates[HAS_DEPLOYMENT] is not None:
        raise CannotDeployPermanentHostSensor(
            "A sensor with a permanent host joins a deployment by registering the permanent host.",
            fields=(PERMANENT_HOST, HAS_DEPLOYMENT),
        )

    # R2
    if _changes(old, updates, PERMANENT_HOST):
        if is_hosted_by:
            raise CannotChangePermanentHost(
                "Cannot change the permanent host of a sensor hosted on a platform.",
                fields=(PERMANENT_HOST, IS_HOSTED_BY),
            )
        if _changes(old, updates, HAS_DEPLOYMENT) and updates[HAS_DEPLOYMENT] is not None:
            raise CannotChangePermanentHost(
                "Cannot change the permanent host while adding the sensor to a deployment.",
                fields=(PERMANENT_HOST, HAS_DEPLOYMENT),
            )

    # R3
    if _changes(old, updates, IS_HOSTED_BY) and updates[IS_HOSTED_BY] is not None:
        if not has_deployment:
            raise CannotHostUndeployedSensor(
                "A sensor must be in a deployment to be hosted on a platform.",
                fields=(IS_HOSTED_BY, HAS_DEPLOYMENT),
            )
        if permanent_host:
            raise CannotHostPermanentHostSensor(
                "A sensor with a permanent host cannot be hosted on a platform directly.",
                fields=(IS_HOSTED_BY, PERMANENT_HOST),
            )

    # R4
    if (
        _changes(old, updates, IS_HOSTED_BY)
        and updates[IS_HOSTED_BY] is None
        and not _changes(old, updates, HAS_DEPLOYMENT)
    ):
        raise CannotUnhostSensor(
            "A sensor is unhosted by deleting its platform, not by editing the sensor.",
            fields=(IS_HOSTED_BY,),
        )

    # R5
    if (
        _changes(old, updates, HAS_DEPLOYMENT)
        and updates[HAS_DEPLOYMENT] is not None
        and old.is_hosted_by
        and not _changes(old, updates, IS_HOSTED_BY)
    ):
        raise CannotSwitchDeploymentWhileHosted(
            "Changing deployment requires changing the host platform as well.",
            fields=(HAS_DEPLOYMENT, IS_HOSTED_BY),
        )

    # R6
    if _changes(old, updates, HAS_DEPLOYMENT) and updates[HAS_DEPLOYMENT] is None and is_hosted_by:
        raise CannotLeaveDeploymentWhileHosted(
            "A sensor cannot leave its deployment while hosted on a platform.",
            fields=(HAS_DEPLOYMENT, IS_HOSTED_BY),
        )


def check_sensor_create(sensor: Sensor) -> None:
    """Validate a new sensor as an update of a blank one."""
    blank = Sensor(id=sensor.id)
    check_sensor_update(blank, {
        PERMANENT_HOST: sensor.permanent_host,
        HAS_DEPLOYMENT: sensor.has_deployment,
        IS_HOSTED_BY: sensor.is_hosted_by,
    })


__all__ = ["check_sensor_update", "check_sensor_create"]
