# ============================================================================
# OBSERVATION SERVICE TESTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Tests - Observation enrichment
# PURPOSE: Verify time-correct context resolution, merging, location lookup
#          along the hosting path and the unknown-sensor log
# CREATED: 19 OCT 2026
# ============================================================================
"""
ObservationService Tests

Run with:
    pytest tests/test_observation_service.py -v
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.contracts import VocabularyKind
from core.errors import InvalidObservation, UnknownSensorNotFound
from core.models import (
    Context,
    ContextToAdd,
    Geometry,
    Location,
    Observation,
    Sensor,
    SensorConfig,
)
from tests.fakes import build_fake_services

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# HELPERS
# ============================================================================

def _build_services():
    services, store = build_fake_services()
    store.add_deployment("dep-1")
    store.add_vocabulary(VocabularyKind.OBSERVABLE_PROPERTY, "air-temperature")
    store.add_vocabulary(VocabularyKind.UNIT, "degree-celsius")
    return services, store


def _make_location(lon, age=timedelta(hours=1)):
    return Location(
        geometry=Geometry(type="Point", coordinates=[lon, 50.0]),
        valid_at=datetime.now(timezone.utc) - age,
    )


def _deploy_thermometer(services):
    """ship > mast > thermo-1, with ship at longitude 1.0."""
    platforms = services["platform"]
    asyncio.run(platforms.create_platform(
        name="Ship", platform_id="ship", owner_deployment="dep-1", location=_make_location(1.0),
    ))
    asyncio.run(platforms.create_platform(
        name="Mast", platform_id="mast", owner_deployment="dep-1", is_hosted_by="ship",
    ))
    asyncio.run(services["sensor"].create_sensor(Sensor(
        id="thermo-1",
        has_deployment="dep-1",
        is_hosted_by="mast",
        current_config=[SensorConfig(
            observed_property="air-temperature", has_priority=True, unit="degree-celsius",
        )],
    )))


def _observe(sensor_id="thermo-1", result_time=None, **fields):
    return Observation(
        made_by_sensor=sensor_id,
        result_time=result_time or datetime.now(timezone.utc),
        has_result={"value": 12.5},
        **fields,
    )


# ============================================================================
# ENRICHMENT
# ============================================================================

class TestAddContext:

    def test_live_context_merged(self):
        services, _ = _build_services()
        _deploy_thermometer(services)

        enriched = asyncio.run(services["observation"].add_context(_observe()))

        assert enriched.in_deployments == ["dep-1"]
        assert enriched.hosted_by_path == ["ship", "mast"]
        assert enriched.observed_property == "air-temperature"
        assert enriched.has_result.unit == "degree-celsius"
        assert enriched.has_result.value == 12.5

    def test_observation_fields_win(self):
        services, _ = _build_services()
        _deploy_thermometer(services)
        observation = _observe(observed_property="relative-humidity", in_deployments=["dep-7"])

        enriched = asyncio.run(services["observation"].add_context(observation))

        assert enriched.observed_property == "relative-humidity"
        assert enriched.in_deployments == ["dep-7"]
        assert enriched.has_result.unit is None

    def test_input_not_mutated(self):
        services, _ = _build_services()
        _deploy_thermometer(services)
        observation = _observe()
        asyncio.run(services["observation"].add_context(observation))
        assert observation.in_deployments is None
        assert observation.has_result.unit is None

    def test_missing_sensor_or_time(self):
        services, _ = _build_services()
        with pytest.raises(InvalidObservation):
            asyncio.run(services["observation"].add_context(Observation(result_time=T0)))
        with pytest.raises(InvalidObservation):
            asyncio.run(services["observation"].add_context(Observation(made_by_sensor="thermo-1")))


class TestHistoricalContext:

    def test_context_chosen_by_result_time(self):
        services, _ = _build_services()
        context_service = services["context"]
        asyncio.run(context_service.create_context(Context(
            sensor="s1", start_date=T0, to_add=ContextToAdd.build(in_deployments=["dep-1"]),
        )))
        asyncio.run(context_service.replace_live_context(
            "s1", ContextToAdd.build(in_deployments=["dep-2"]), T0 + timedelta(days=1),
        ))

        before = asyncio.run(services["observation"].add_context(
            _observe("s1", T0 + timedelta(hours=23))
        ))
        after = asyncio.run(services["observation"].add_context(
            _observe("s1", T0 + timedelta(days=1))
        ))

        assert before.in_deployments == ["dep-1"]
        assert after.in_deployments == ["dep-2"]

    def test_naive_result_time_is_utc(self):
        services, _ = _build_services()
        asyncio.run(services["context"].create_context(Context(
            sensor="s1", start_date=T0, to_add=ContextToAdd.build(in_deployments=["dep-1"]),
        )))
        enriched = asyncio.run(services["observation"].add_context(
            _observe("s1", datetime(2026, 3, 1, 9, 30))
        ))
        assert enriched.in_deployments == ["dep-1"]


# ============================================================================
# LOCATION
# ============================================================================

class TestLocation:

    def test_location_from_nearest_platform(self):
        services, _ = _build_services()
        _deploy_thermometer(services)
        asyncio.run(services["platform"].platform_repo.update("mast", {"location": _make_location(2.0)}))

        enriched = asyncio.run(services["observation"].add_context(_observe()))

        assert enriched.location.geometry.coordinates == [2.0, 50.0]

    def test_location_from_higher_platform(self):
        services, _ = _build_services()
        _deploy_thermometer(services)
        asyncio.run(services["platform"].platform_repo.update("mast", {"location": None}))

        enriched = asyncio.run(services["observation"].add_context(_observe()))

        assert enriched.location.geometry.coordinates == [1.0, 50.0]

    def test_observation_location_kept(self):
        services, _ = _build_services()
        _deploy_thermometer(services)
        own = _make_location(9.0)

        enriched = asyncio.run(services["observation"].add_context(_observe(location=own)))

        assert enriched.location.geometry.coordinates == [9.0, 50.0]

    def test_unhosted_sensor_has_no_location(self):
        services, _ = _build_services()
        asyncio.run(services["sensor"].create_sensor(Sensor(id="thermo-2", has_deployment="dep-1")))
        enriched = asyncio.run(services["observation"].add_context(_observe("thermo-2")))
        assert enriched.in_deployments == ["dep-1"]
        assert enriched.location is None


# ============================================================================
# UNKNOWN SENSORS
# ============================================================================

class TestUnknownSensors:

    def test_unknown_sensor_recorded(self):
        services, store = _build_services()
        observation = _observe("ghost")

        returned = asyncio.run(services["observation"].add_context(observation))
        asyncio.run(services["observation"].add_context(_observe("ghost")))

        assert returned.in_deployments is None
        assert store.unknown_sensors["ghost"].n_observations == 2
        assert store.unknown_sensors["ghost"].last_observation["made_by_sensor"] == "ghost"

    def test_observation_before_first_context(self):
        services, store = _build_services()
        _deploy_thermometer(services)
        early = _observe(result_time=datetime.now(timezone.utc) - timedelta(days=1))

        returned = asyncio.run(services["observation"].add_context(early))

        assert returned.in_deployments is None
        assert "thermo-1" in store.unknown_sensors

    def test_list_and_delete(self):
        services, _ = _build_services()
        for sensor_id in ("ghost", "ghost", "phantom"):
            asyncio.run(services["observation"].add_context(_observe(sensor_id)))

        unknown = asyncio.run(services["observation"].get_unknown_sensors())
        assert [(u.id, u.n_observations) for u in unknown] == [("ghost", 2), ("phantom", 1)]

        asyncio.run(services["observation"].delete_unknown_sensor("ghost"))
        with pytest.raises(UnknownSensorNotFound):
            asyncio.run(services["observation"].delete_unknown_sensor("ghost"))
