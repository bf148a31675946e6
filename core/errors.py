# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Foundation - Typed operational errors
# PURPOSE: Expected outcomes (validation, forbidden, not found, conflict)
#          and wrapped store failures, each carrying an HTTP status
# CREATED: 19 OCT 2026
# ============================================================================
"""
Error Taxonomy

Every error a service raises on purpose derives from OperationalError.
The five families map one-to-one onto HTTP statuses:

    ValidationError  400   malformed input, rejected before any write
    Forbidden        403   legal shape, illegal state transition
    NotFound         404   referenced entity absent
    Conflict         409   uniqueness violation
    StoreFailure     500   the store itself errored

Expected families are returned to the caller and never logged as failures.
StoreFailure keeps the internal detail on `.detail`; only the public
message is ever shown to a caller.
"""

from typing import Iterable, Optional


class OperationalError(Exception):
    """Base for all errors raised deliberately by this service."""

    status_code: int = 500
    default_message: str = "The operation failed."

    def __init__(self, message: Optional[str] = None):
        self.public_message = message or self.default_message
        super().__init__(self.public_message)

    def to_dict(self) -> dict:
        return {
            "error": self.__class__.__name__,
            "status_code": self.status_code,
            "message": self.public_message,
        }


# ============================================================================
# FAMILIES
# ============================================================================

class ValidationError(OperationalError):
    status_code = 400
    default_message = "Invalid request."


class Forbidden(OperationalError):
    status_code = 403
    default_message = "This operation is not allowed."


class NotFound(OperationalError):
    status_code = 404
    default_message = "Resource not found."


class Conflict(OperationalError):
    status_code = 409
    default_message = "Resource already exists."


class StoreFailure(OperationalError):
    """
    The underlying store call errored.

    str(exc) is the public-safe message; `detail` holds the internal cause.
    """
    status_code = 500
    default_message = "A storage operation failed."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


# ============================================================================
# VALIDATION
# ============================================================================

class InvalidSensor(ValidationError):
    default_message = "Invalid sensor."


class InvalidSensorConfig(ValidationError):
    default_message = "Invalid sensor config."


class InvalidPlatform(ValidationError):
    default_message = "Invalid platform."


class InvalidPlatformHost(ValidationError):
    default_message = "The platform cannot be hosted on this platform."


class PlatformAlreadyUnhosted(ValidationError):
    default_message = "The platform is not hosted on any platform."


class PlatformNotSharedWithDeployment(ValidationError):
    default_message = "The platform is not shared with the deployment and therefore cannot be unshared from it."


class SensorPlatformNotInDeployment(ValidationError):
    default_message = "The host platform does not belong to the sensor's deployment."


class InvalidContext(ValidationError):
    default_message = "Invalid context."


class InvalidObservation(ValidationError):
    default_message = "Invalid observation."


class InvalidGeometry(ValidationError):
    default_message = "Invalid geometry."


class InvalidRegistrationKey(ValidationError):
    default_message = "Invalid registration key."


class DeploymentIsPublic(ValidationError):
    default_message = "The deployment is still public."


# ============================================================================
# FORBIDDEN
# ============================================================================

class SensorRelationshipForbidden(Forbidden):
    """
    A proposed sensor update breaks the permanent host / deployment / host
    platform rules. `fields` names the sensor fields in conflict.
    """
    default_message = "This change to the sensor's relationships is not allowed."

    def __init__(self, message: Optional[str] = None, fields: Iterable[str] = ()):
        self.fields = tuple(fields)
        super().__init__(message)

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["fields"] = list(self.fields)
        return result


class CannotDeployPermanentHostSensor(SensorRelationshipForbidden):
    default_message = "A sensor with a permanent host can only join a deployment by registering its permanent host."


class CannotChangePermanentHost(SensorRelationshipForbidden):
    default_message = "A sensor's permanent host cannot change while it is hosted on a platform or being added to a deployment."


class CannotHostUndeployedSensor(SensorRelationshipForbidden):
    default_message = "A sensor must be in a deployment before it can be hosted on a platform."


class CannotHostPermanentHostSensor(SensorRelationshipForbidden):
    default_message = "A sensor with a permanent host cannot be hosted on a platform directly."


class CannotUnhostSensor(SensorRelationshipForbidden):
    default_message = "A sensor cannot be removed from its platform on its own."


class CannotSwitchDeploymentWhileHosted(SensorRelationshipForbidden):
    default_message = "A sensor cannot change deployment while it remains on a platform of its old deployment."


class CannotLeaveDeploymentWhileHosted(SensorRelationshipForbidden):
    default_message = "A sensor cannot leave its deployment while it is still hosted on a platform."


class StaticPlatformOnMobileHost(Forbidden):
    default_message = "A static platform cannot be hosted by a mobile platform."


class HostPlatformInPrivateDeployment(Forbidden):
    default_message = "The host platform belongs to a private deployment the platform is not part of."


class CannotUnshareFromOwnerDeployment(Forbidden):
    default_message = "It is not possible to unshare a platform from the deployment that owns it."


# ============================================================================
# NOT FOUND
# ============================================================================

class SensorNotFound(NotFound):
    default_message = "Sensor not found."


class PlatformNotFound(NotFound):
    default_message = "Platform not found."


class ContextNotFound(NotFound):
    default_message = "Context not found."


class DeploymentNotFound(NotFound):
    default_message = "Deployment not found."


class PermanentHostNotFound(NotFound):
    default_message = "Permanent host not found."


class VocabularyEntityNotFound(NotFound):
    default_message = "Vocabulary entity not found."


class UnknownSensorNotFound(NotFound):
    default_message = "Unknown sensor not found."


# ============================================================================
# CONFLICT
# ============================================================================

class SensorAlreadyExists(Conflict):
    default_message = "A sensor with this id already exists."


class PlatformAlreadyExists(Conflict):
    default_message = "A platform with this id already exists."


class ContextAlreadyExists(Conflict):
    default_message = "The sensor already has a live context."


class PermanentHostAlreadyExists(Conflict):
    default_message = "A permanent host with this id or registration key already exists."


class DeploymentAlreadyExists(Conflict):
    default_message = "A deployment with this id already exists."


class VocabularyEntityAlreadyExists(Conflict):
    default_message = "A vocabulary entity with this id already exists."


class PermanentHostAlreadyRegistered(Conflict):
    default_message = "The permanent host has already been registered."


class SensorAlreadyRegistered(Conflict):
    default_message = "A sensor on this permanent host is already in a deployment."


class PlatformAlreadyInDeployment(Conflict):
    default_message = "The platform is already shared with this deployment."


__all__ = [name for name, obj in list(globals().items())
           if isinstance(obj, type) and issubclass(obj, OperationalError)]
