# ============================================================================
# REGISTRATION SERVICE TESTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Tests - Permanent host registry and registration
# PURPOSE: Verify keys, the all-or-nothing sensor check and the platform,
#          sensor and context writes a registration makes
# CREATED: 19 OCT 2026
# ============================================================================
"""
RegistrationService Tests

Run with:
    pytest tests/test_registration_service.py -v
"""

import asyncio

import pytest

from core.contracts import VocabularyKind
from core.errors import (
    DeploymentNotFound,
    InvalidRegistrationKey,
    PermanentHostAlreadyExists,
    PermanentHostAlreadyRegistered,
    PermanentHostNotFound,
    SensorAlreadyRegistered,
)
from core.models import Sensor, SensorConfig
from tests.fakes import build_fake_services

KEY = "K7QX2MNP4R"


# ============================================================================
# HELPERS
# ============================================================================

def _build_services():
    services, store = build_fake_services()
    store.add_deployment("dep-1")
    store.add_vocabulary(VocabularyKind.OBSERVABLE_PROPERTY, "air-temperature")
    return services, store


def _create_box(services, host_id="box-1", sensor_ids=("box-1-temp", "box-1-gps"), **fields):
    registration = services["registration"]
    asyncio.run(registration.create_permanent_host(
        host_id, "Weather Box", registration_key=KEY, **fields
    ))
    for sensor_id in sensor_ids:
        asyncio.run(services["sensor"].create_sensor(Sensor(
            id=sensor_id,
            permanent_host=host_id,
            current_config=[SensorConfig(observed_property="air-temperature", has_priority=True)],
        )))


# ============================================================================
# REGISTRY
# ============================================================================

class TestPermanentHosts:

    def test_generated_key(self):
        services, _ = _build_services()
        host = asyncio.run(services["registration"].create_permanent_host("box-1", "Weather Box"))
        assert len(host.registration_key) == 10
        assert not host.is_registered

    def test_wrong_key_length(self):
        services, _ = _build_services()
        with pytest.raises(InvalidRegistrationKey):
            asyncio.run(services["registration"].create_permanent_host(
                "box-1", "Weather Box", registration_key="SHORT"
            ))

    def test_duplicate_key(self):
        services, _ = _build_services()
        asyncio.run(services["registration"].create_permanent_host("box-1", "A", registration_key=KEY))
        with pytest.raises(PermanentHostAlreadyExists):
            asyncio.run(services["registration"].create_permanent_host("box-2", "B", registration_key=KEY))

    def test_lookup_by_key(self):
        services, _ = _build_services()
        asyncio.run(services["registration"].create_permanent_host("box-1", "A", registration_key=KEY))
        host = asyncio.run(services["registration"].get_permanent_host_by_registration_key(KEY))
        assert host.id == "box-1"
        with pytest.raises(PermanentHostNotFound):
            asyncio.run(services["registration"].get_permanent_host("box-9"))


# ============================================================================
# REGISTER
# ============================================================================

class TestRegister:

    def test_register_moves_host_into_deployment(self):
        services, store = _build_services()
        _create_box(services, static=True, update_location_with_sensor="box-1-gps")

        result = asyncio.run(services["registration"].register(KEY, "dep-1"))

        platform = result["platform"]
        assert platform.id.startswith("box-1-")
        assert platform.owner_deployment == "dep-1"
        assert platform.static
        assert platform.update_location_with_sensor == "box-1-gps"
        assert platform.initialised_from == "box-1"
        assert result["sensors"] == ["box-1-gps", "box-1-temp"]
        assert len(result["contexts"]) == 2

        for sensor_id in result["sensors"]:
            sensor = store.sensors[sensor_id]
            assert sensor.has_deployment == "dep-1"
            assert sensor.is_hosted_by == platform.id
            live = store.live_contexts_for(sensor_id)
            assert len(live) == 1
            assert live[0].to_add.in_deployments == ["dep-1"]
            assert live[0].to_add.hosted_by_path == [platform.id]
            assert live[0].to_add.observed_property.value == "air-temperature"
            assert len(store.contexts_for(sensor_id)) == 2

        assert store.permanent_hosts["box-1"].registered_as == platform.id

    def test_register_twice(self):
        services, _ = _build_services()
        _create_box(services)
        asyncio.run(services["registration"].register(KEY, "dep-1"))
        with pytest.raises(PermanentHostAlreadyRegistered):
            asyncio.run(services["registration"].register(KEY, "dep-1"))

    def test_unknown_key(self):
        services, _ = _build_services()
        with pytest.raises(PermanentHostNotFound):
            asyncio.run(services["registration"].register("ZZZZZZZZZZ", "dep-1"))

    def test_malformed_key(self):
        services, _ = _build_services()
        with pytest.raises(InvalidRegistrationKey):
            asyncio.run(services["registration"].register("abc", "dep-1"))

    def test_unknown_deployment(self):
        services, store = _build_services()
        _create_box(services)
        with pytest.raises(DeploymentNotFound):
            asyncio.run(services["registration"].register(KEY, "dep-9"))
        assert store.platforms == {}

    def test_deployed_sensor_blocks_everything(self):
        services, store = _build_services()
        _create_box(services)
        store.sensors["box-1-temp"] = store.sensors["box-1-temp"].model_copy(
            update={"has_deployment": "dep-1"}
        )

        with pytest.raises(SensorAlreadyRegistered, match="box-1-temp"):
            asyncio.run(services["registration"].register(KEY, "dep-1"))

        assert store.platforms == {}
        assert store.sensors["box-1-gps"].has_deployment is None
        assert store.permanent_hosts["box-1"].registered_as is None

    def test_host_without_sensors(self):
        services, store = _build_services()
        _create_box(services, sensor_ids=())
        result = asyncio.run(services["registration"].register(KEY, "dep-1"))
        assert result["sensors"] == []
        assert result["platform"].id in store.platforms


class TestDeregister:

    def test_deregister_keeps_platform_and_sensors(self):
        services, store = _build_services()
        _create_box(services)
        result = asyncio.run(services["registration"].register(KEY, "dep-1"))

        host = asyncio.run(services["registration"].deregister_permanent_host("box-1"))

        assert host.registered_as is None
        assert result["platform"].id in store.platforms
        assert store.sensors["box-1-temp"].has_deployment == "dep-1"

    def test_register_again_after_platform_deleted(self):
        services, store = _build_services()
        _create_box(services)
        first = asyncio.run(services["registration"].register(KEY, "dep-1"))

        asyncio.run(services["platform"].delete_platform(first["platform"].id))
        assert store.sensors["box-1-temp"].has_deployment is None

        second = asyncio.run(services["registration"].register(KEY, "dep-1"))
        assert second["platform"].id != first["platform"].id
        assert store.sensors["box-1-temp"].is_hosted_by == second["platform"].id
