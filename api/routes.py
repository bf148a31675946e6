# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - HTTP endpoints
# PURPOSE: Thin request layer over the sensor context services
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

Endpoints (mounted under /api/v1):

Sensors
- POST   /sensors                                  - Create sensor
- GET    /sensors                                  - List (host/deployment filters)
- GET    /sensors/{sensor_id}                      - Get sensor
- PATCH  /sensors/{sensor_id}                      - Update sensor
- DELETE /sensors/{sensor_id}                      - Delete sensor

Contexts
- GET    /sensors/{sensor_id}/contexts             - Versions, newest first
- GET    /sensors/{sensor_id}/contexts/live        - Live context
- GET    /sensors/{sensor_id}/contexts/at?t=...    - Context valid at t
- GET    /contexts/{context_id}                    - Get context

Platforms
- POST   /platforms                                - Create platform
- GET    /platforms                                - List (owner/in deployment)
- GET    /platforms/{platform_id}                  - Get platform
- PATCH  /platforms/{platform_id}                  - Update platform
- DELETE /platforms/{platform_id}                  - Delete platform
- POST   /platforms/{platform_id}/rehost           - Move onto a host
- POST   /platforms/{platform_id}/unhost           - Detach from host
- POST   /platforms/{platform_id}/share            - Share with deployment
- POST   /platforms/{platform_id}/unshare          - Unshare from deployment
- GET    /platforms/{platform_id}/hosts            - Nested hosting tree
- GET    /platforms/{platform_id}/descendants      - Every platform below

Permanent hosts and registration
- POST   /permanent-hosts                          - Add permanent host
- GET    /permanent-hosts/{host_id}                - Get permanent host
- POST   /permanent-hosts/{host_id}/deregister     - Clear registered_as
- POST   /register                                 - Register into deployment

Deployments
- POST   /deployments/{deployment_id}/deleted      - Clean up after deletion
- POST   /deployments/{deployment_id}/made-private - Clean up after going private

Observations
- POST   /observations/add-context                 - Enrich observation
- POST   /observations/location                    - Apply location observation
- GET    /unknown-sensors                          - Unknown sensors
- DELETE /unknown-sensors/{sensor_id}              - Forget unknown sensor

Errors raised by services are OperationalErrors; install_error_handlers()
turns them into JSON responses carrying only the public message.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from core.errors import OperationalError, StoreFailure
from core.logging import ComponentType, get_logger
from core.models import Context, Observation, PermanentHost, Platform, Sensor, UnknownSensor
from .schemas import (
    PermanentHostCreate,
    PlatformCreate,
    PlatformUpdate,
    RegisterRequest,
    RegisterResponse,
    RehostRequest,
    SensorCreate,
    SensorUpdate,
    ShareRequest,
)

logger = get_logger(__name__, ComponentType.API)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

_services: Dict[str, Any] = {}


def set_services(services: Dict[str, Any]) -> None:
    """Called by main.py at startup to inject the services."""
    _services.clear()
    _services.update(services)


def _get_service(name: str):
    """Get a service, raising 503 if not initialized."""
    service = _services.get(name)
    if service is None:
        raise HTTPException(503, f"{name.capitalize()} service not initialized")
    return service


# ============================================================================
# ERROR HANDLING
# ============================================================================

async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.debug(f"{request.method} {request.url.path}: {exc.__class__.__name__}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OperationalError, operational_error_handler)


# ============================================================================
# SENSORS
# ============================================================================

@router.post("/sensors", response_model=Sensor, status_code=201, tags=["Sensors"])
async def create_sensor(request: SensorCreate):
    svc = _get_service("sensor")
    return await svc.create_sensor(Sensor(**request.model_dump()))


@router.get("/sensors", response_model=List[Sensor], tags=["Sensors"])
async def list_sensors(
    permanent_host: Optional[str] = Query(None),
    has_deployment: Optional[str] = Query(None),
    is_hosted_by: Optional[str] = Query(None),
):
    return await _get_service("sensor").get_sensors(
        permanent_host=permanent_host,
        has_deployment=has_deployment,
        is_hosted_by=is_hosted_by,
    )


@router.get("/sensors/{sensor_id}", response_model=Sensor, tags=["Sensors"])
async def get_sensor(sensor_id: str):
    return await _get_service("sensor").get_sensor(sensor_id)


@router.patch("/sensors/{sensor_id}", response_model=Sensor, tags=["Sensors"])
async def update_sensor(sensor_id: str, request: SensorUpdate):
    return await _get_service("sensor").update_sensor(sensor_id, request.changes())


@router.delete("/sensors/{sensor_id}", status_code=204, tags=["Sensors"])
async def delete_sensor(sensor_id: str):
    await _get_service("sensor").delete_sensor(sensor_id)


# ============================================================================
# CONTEXTS
# ============================================================================

@router.get("/sensors/{sensor_id}/contexts", response_model=List[Context], tags=["Contexts"])
async def list_contexts(sensor_id: str, limit: int = Query(100, ge=1, le=1000)):
    return await _get_service("context").get_contexts_for_sensor(sensor_id, limit=limit)


@router.get("/sensors/{sensor_id}/contexts/live", response_model=Context, tags=["Contexts"])
async def get_live_context(sensor_id: str):
    return await _get_service("context").get_live_context(sensor_id)


@router.get("/sensors/{sensor_id}/contexts/at", response_model=Context, tags=["Contexts"])
async def get_context_at(sensor_id: str, t: datetime = Query(..., description="ISO 8601 instant")):
    return await _get_service("context").get_context_at(sensor_id, t)


@router.get("/contexts/{context_id}", response_model=Context, tags=["Contexts"])
async def get_context(context_id: str):
    return await _get_service("context").get_context(context_id)


# ============================================================================
# PLATFORMS
# ============================================================================

@router.post("/platforms", response_model=Platform, status_code=201, tags=["Platforms"])
async def create_platform(request: PlatformCreate):
    svc = _get_service("platform")
    return await svc.create_platform(
        platform_id=request.id,
        name=request.name,
        description=request.description,
        owner_deployment=request.owner_deployment,
        is_hosted_by=request.is_hosted_by,
        static=request.static,
        location=request.location,
        update_location_with_sensor=request.update_location_with_sensor,
    )


@router.get("/platforms", response_model=List[Platform], tags=["Platforms"])
async def list_platforms(
    owner_deployment: Optional[str] = Query(None),
    in_deployment: Optional[str] = Query(None),
):
    return await _get_service("platform").get_platforms(
        owner_deployment=owner_deployment, in_deployment=in_deployment
    )


@router.get("/platforms/{platform_id}", response_model=Platform, tags=["Platforms"])
async def get_platform(platform_id: str):
    return await _get_service("platform").get_platform(platform_id)


@router.patch("/platforms/{platform_id}", response_model=Platform, tags=["Platforms"])
async def update_platform(platform_id: str, request: PlatformUpdate):
    return await _get_service("platform").update_platform(platform_id, request.changes())


@router.delete("/platforms/{platform_id}", status_code=204, tags=["Platforms"])
async def delete_platform(platform_id: str):
    await _get_service("platform").delete_platform(platform_id)


@router.post("/platforms/{platform_id}/rehost", response_model=Platform, tags=["Platforms"])
async def rehost_platform(platform_id: str, request: RehostRequest):
    return await _get_service("platform").rehost_platform(platform_id, request.host_id)


@router.post("/platforms/{platform_id}/unhost", response_model=Platform, tags=["Platforms"])
async def unhost_platform(platform_id: str):
    return await _get_service("platform").unhost_platform(platform_id)


@router.post("/platforms/{platform_id}/share", response_model=Platform, tags=["Platforms"])
async def share_platform(platform_id: str, request: ShareRequest):
    return await _get_service("platform").share_platform_with_deployment(
        platform_id, request.deployment_id
    )


@router.post("/platforms/{platform_id}/unshare", response_model=Platform, tags=["Platforms"])
async def unshare_platform(platform_id: str, request: ShareRequest):
    return await _get_service("platform").unshare_platform_with_deployment(
        platform_id, request.deployment_id
    )


@router.get("/platforms/{platform_id}/hosts", tags=["Platforms"])
async def get_nested_hosts(platform_id: str) -> Dict[str, Any]:
    return await _get_service("platform").build_nested_hosts(platform_id)


@router.get("/platforms/{platform_id}/descendants", response_model=List[Platform], tags=["Platforms"])
async def get_descendants(platform_id: str):
    return await _get_service("platform").get_descendants_of_platform(platform_id)


# ============================================================================
# PERMANENT HOSTS AND REGISTRATION
# ============================================================================

@router.post("/permanent-hosts", response_model=PermanentHost, status_code=201, tags=["Registration"])
async def create_permanent_host(request: PermanentHostCreate):
    return await _get_service("registration").create_permanent_host(
        host_id=request.id,
        name=request.name,
        description=request.description,
        registration_key=request.registration_key,
        static=request.static,
        update_location_with_sensor=request.update_location_with_sensor,
    )


@router.get("/permanent-hosts/{host_id}", response_model=PermanentHost, tags=["Registration"])
async def get_permanent_host(host_id: str):
    return await _get_service("registration").get_permanent_host(host_id)


@router.post("/permanent-hosts/{host_id}/deregister", response_model=PermanentHost, tags=["Registration"])
async def deregister_permanent_host(host_id: str):
    return await _get_service("registration").deregister_permanent_host(host_id)


@router.post("/register", response_model=RegisterResponse, status_code=201, tags=["Registration"])
async def register(request: RegisterRequest):
    result = await _get_service("registration").register(
        request.registration_key, request.deployment_id
    )
    return RegisterResponse(
        platform_id=result["platform"].id,
        sensors=result["sensors"],
        contexts=result["contexts"],
    )


# ============================================================================
# DEPLOYMENTS
# ============================================================================

@router.post("/deployments/{deployment_id}/deleted", tags=["Deployments"])
async def deployment_deleted(deployment_id: str) -> Dict[str, int]:
    """Called by the deployment service after it deleted a deployment."""
    return await _get_service("platform").process_deployment_deleted(deployment_id)


@router.post("/deployments/{deployment_id}/made-private", tags=["Deployments"])
async def deployment_made_private(deployment_id: str) -> Dict[str, int]:
    """Called by the deployment service after it switched a deployment to private."""
    return await _get_service("platform").process_deployment_made_private(deployment_id)


# ============================================================================
# OBSERVATIONS
# ============================================================================

@router.post("/observations/add-context", tags=["Observations"])
async def add_context(observation: Observation) -> Dict[str, Any]:
    enriched = await _get_service("observation").add_context(observation)
    return enriched.to_document()


@router.post("/observations/location", response_model=List[Platform], tags=["Observations"])
async def location_observation(observation: Observation):
    return await _get_service("platform").update_platforms_with_location_observation(observation)


@router.get("/unknown-sensors", response_model=List[UnknownSensor], tags=["Observations"])
async def list_unknown_sensors(limit: int = Query(100, ge=1, le=1000)):
    return await _get_service("observation").get_unknown_sensors(limit=limit)


@router.delete("/unknown-sensors/{sensor_id}", status_code=204, tags=["Observations"])
async def delete_unknown_sensor(sensor_id: str):
    await _get_service("observation").delete_unknown_sensor(sensor_id)


__all__ = ["router", "set_services", "install_error_handlers"]
