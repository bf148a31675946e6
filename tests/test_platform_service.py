# ============================================================================
# PLATFORM SERVICE TESTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Tests - Platform hosting hierarchy
# PURPOSE: Verify paths, static/mobile rules, location propagation, sharing,
#          deletion and deployment cleanup
# CREATED: 19 OCT 2026
# ============================================================================
"""
PlatformService Tests

Runs against in-memory repositories (tests.fakes).

Run with:
    pytest tests/test_platform_service.py -v
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import (
    CannotUnshareFromOwnerDeployment,
    DeploymentIsPublic,
    DeploymentNotFound,
    HostPlatformInPrivateDeployment,
    InvalidGeometry,
    InvalidObservation,
    InvalidPlatform,
    InvalidPlatformHost,
    PlatformAlreadyExists,
    PlatformAlreadyInDeployment,
    PlatformAlreadyUnhosted,
    PlatformNotFound,
    PlatformNotSharedWithDeployment,
    SensorNotFound,
    StaticPlatformOnMobileHost,
)
from core.models import Geometry, Location, Observation, PermanentHost, Sensor
from tests.fakes import build_fake_services


# ============================================================================
# HELPERS
# ============================================================================

def _build_services():
    services, store = build_fake_services()
    store.add_deployment("dep-1")
    store.add_deployment("dep-2")
    store.add_deployment("open-data", public=True)
    return services, store


def _make_location(lon=-1.9, lat=52.4, age=timedelta(hours=1)):
    return Location(
        geometry=Geometry(type="Point", coordinates=[lon, lat]),
        valid_at=datetime.now(timezone.utc) - age,
    )


def _create(services, platform_id, owner_deployment="dep-1", **fields):
    return asyncio.run(services["platform"].create_platform(
        name=platform_id.title(), platform_id=platform_id, owner_deployment=owner_deployment, **fields
    ))


def _create_sensor(services, sensor_id, platform_id, deployment="dep-1"):
    return asyncio.run(services["sensor"].create_sensor(
        Sensor(id=sensor_id, has_deployment=deployment, is_hosted_by=platform_id)
    ))


# ============================================================================
# CREATE
# ============================================================================

class TestCreatePlatform:

    def test_id_from_name(self):
        services, _ = _build_services()
        platform = asyncio.run(services["platform"].create_platform(
            name="Research Vessel #2", owner_deployment="dep-1",
        ))
        assert platform.id == "research-vessel-2"
        assert platform.in_deployments == ["dep-1"]
        assert platform.hosted_by_path == []

    def test_derived_id_collision_retries_with_suffix(self):
        services, _ = _build_services()
        first = asyncio.run(services["platform"].create_platform(name="Buoy", owner_deployment="dep-1"))
        second = asyncio.run(services["platform"].create_platform(name="Buoy", owner_deployment="dep-1"))
        assert first.id == "buoy"
        assert second.id.startswith("buoy-")
        assert len(second.id) == len("buoy-") + 3

    def test_explicit_id_collision(self):
        services, _ = _build_services()
        _create(services, "buoy")
        with pytest.raises(PlatformAlreadyExists):
            _create(services, "buoy")

    def test_unknown_deployment(self):
        services, _ = _build_services()
        with pytest.raises(DeploymentNotFound):
            _create(services, "buoy", owner_deployment="dep-9")

    def test_hosted_inherits_path_and_location(self):
        services, _ = _build_services()
        location = _make_location()
        _create(services, "ship", location=location)
        mast = _create(services, "mast", is_hosted_by="ship")
        assert mast.hosted_by_path == ["ship"]
        assert mast.location.geometry == location.geometry

    def test_static_on_mobile_host(self):
        services, _ = _build_services()
        _create(services, "ship")
        with pytest.raises(StaticPlatformOnMobileHost):
            _create(services, "tripod", is_hosted_by="ship", static=True)

    def test_static_on_static_host(self):
        services, _ = _build_services()
        _create(services, "station", static=True)
        assert _create(services, "tripod", is_hosted_by="station", static=True).static

    def test_private_host_of_other_deployment(self):
        services, _ = _build_services()
        _create(services, "ship", owner_deployment="dep-2")
        with pytest.raises(HostPlatformInPrivateDeployment):
            _create(services, "mast", is_hosted_by="ship")

    def test_host_of_public_deployment(self):
        services, _ = _build_services()
        _create(services, "ship", owner_deployment="open-data")
        assert _create(services, "mast", is_hosted_by="ship").hosted_by_path == ["ship"]

    def test_host_shared_with_deployment(self):
        services, _ = _build_services()
        _create(services, "ship", owner_deployment="dep-2")
        asyncio.run(services["platform"].share_platform_with_deployment("ship", "dep-1"))
        assert _create(services, "mast", is_hosted_by="ship").is_hosted_by == "ship"

    def test_future_location_rejected(self):
        services, _ = _build_services()
        with pytest.raises(InvalidPlatform, match="future"):
            _create(services, "buoy", location=_make_location(age=-timedelta(minutes=5)))


# ============================================================================
# REHOST / UNHOST
# ============================================================================

class TestRehost:

    def test_subtree_paths_and_contexts(self):
        services, store = _build_services()
        _create(services, "ship")
        _create(services, "buoy")
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "arm", is_hosted_by="mast")
        _create_sensor(services, "anemometer", "arm")

        asyncio.run(services["platform"].rehost_platform("mast", "buoy"))

        assert store.platforms["mast"].hosted_by_path == ["buoy"]
        assert store.platforms["mast"].is_hosted_by == "buoy"
        assert store.platforms["arm"].hosted_by_path == ["buoy", "mast"]
        live = store.live_contexts_for("anemometer")
        assert live[0].to_add.hosted_by_path == ["buoy", "mast", "arm"]
        assert len(store.contexts_for("anemometer")) == 2

    def test_location_flows_down(self):
        services, store = _build_services()
        location = _make_location()
        _create(services, "station", static=True, location=location)
        _create(services, "buoy")
        _create(services, "arm", is_hosted_by="buoy")

        asyncio.run(services["platform"].rehost_platform("buoy", "station"))

        assert store.platforms["buoy"].location.geometry == location.geometry
        assert store.platforms["arm"].location.geometry == location.geometry

    def test_static_platform_keeps_own_location(self):
        services, store = _build_services()
        own = _make_location(lon=10.0)
        _create(services, "station", static=True, location=_make_location())
        _create(services, "tripod", static=True, location=own)
        asyncio.run(services["platform"].rehost_platform("tripod", "station"))
        assert store.platforms["tripod"].location.geometry == own.geometry

    def test_static_onto_mobile_rejected(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "tripod", static=True)
        with pytest.raises(StaticPlatformOnMobileHost):
            asyncio.run(services["platform"].rehost_platform("tripod", "ship"))

    def test_same_host_rejected(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        with pytest.raises(InvalidPlatformHost, match="already"):
            asyncio.run(services["platform"].rehost_platform("mast", "ship"))

    def test_cycle_rejected(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        with pytest.raises(InvalidPlatformHost, match="cycle"):
            asyncio.run(services["platform"].rehost_platform("ship", "mast"))
        with pytest.raises(InvalidPlatformHost):
            asyncio.run(services["platform"].rehost_platform("ship", "ship"))

    def test_missing_host(self):
        services, _ = _build_services()
        _create(services, "mast")
        with pytest.raises(PlatformNotFound):
            asyncio.run(services["platform"].rehost_platform("mast", "ship"))


class TestUnhost:

    def test_unhost_keeps_location_and_rewrites_subtree(self):
        services, store = _build_services()
        location = _make_location()
        _create(services, "ship", location=location)
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "arm", is_hosted_by="mast")
        _create_sensor(services, "anemometer", "arm")

        asyncio.run(services["platform"].unhost_platform("mast"))

        assert store.platforms["mast"].is_hosted_by is None
        assert store.platforms["mast"].hosted_by_path == []
        assert store.platforms["mast"].location.geometry == location.geometry
        assert store.platforms["arm"].hosted_by_path == ["mast"]
        assert store.live_contexts_for("anemometer")[0].to_add.hosted_by_path == ["mast", "arm"]

    def test_unhost_root(self):
        services, _ = _build_services()
        _create(services, "ship")
        with pytest.raises(PlatformAlreadyUnhosted):
            asyncio.run(services["platform"].unhost_platform("ship"))


# ============================================================================
# UPDATE
# ============================================================================

class TestUpdatePlatform:

    def test_location_reaches_mobile_and_unlocated_children(self):
        services, store = _build_services()
        own = _make_location(lon=3.0)
        _create(services, "station", static=True)
        _create(services, "mast", is_hosted_by="station")
        _create(services, "tripod", is_hosted_by="station", static=True, location=own)

        location = _make_location(lon=5.0)
        asyncio.run(services["platform"].update_platform("station", {"location": location}))

        assert store.platforms["station"].location.geometry == location.geometry
        assert store.platforms["mast"].location.geometry == location.geometry
        assert store.platforms["tripod"].location.geometry == own.geometry

    def test_location_as_document(self):
        services, store = _build_services()
        _create(services, "buoy")
        asyncio.run(services["platform"].update_platform("buoy", {"location": {
            "geometry": {"type": "Point", "coordinates": [1.0, 2.0]},
        }}))
        assert store.platforms["buoy"].location.geometry.coordinates == [1.0, 2.0]

    def test_malformed_location_document(self):
        services, store = _build_services()
        _create(services, "buoy")
        with pytest.raises(InvalidPlatform, match="location"):
            asyncio.run(services["platform"].update_platform("buoy", {"location": {"geometry": "nope"}}))
        assert store.platforms["buoy"].location is None

    def test_invalid_geometry(self):
        services, _ = _build_services()
        _create(services, "buoy")
        bad = Location(geometry=Geometry(type="Point", coordinates=[500, 0]))
        with pytest.raises(InvalidGeometry):
            asyncio.run(services["platform"].update_platform("buoy", {"location": bad}))

    def test_becoming_static_on_mobile_host(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        with pytest.raises(StaticPlatformOnMobileHost):
            asyncio.run(services["platform"].update_platform("mast", {"static": True}))

    def test_becoming_mobile_under_static_children(self):
        services, _ = _build_services()
        _create(services, "station", static=True)
        _create(services, "tripod", is_hosted_by="station", static=True)
        with pytest.raises(StaticPlatformOnMobileHost):
            asyncio.run(services["platform"].update_platform("station", {"static": False}))

    def test_host_not_editable(self):
        services, _ = _build_services()
        _create(services, "mast")
        with pytest.raises(InvalidPlatform, match="is_hosted_by"):
            asyncio.run(services["platform"].update_platform("mast", {"is_hosted_by": "ship"}))

    def test_location_sensor_must_exist(self):
        services, _ = _build_services()
        _create(services, "buoy")
        with pytest.raises(SensorNotFound):
            asyncio.run(services["platform"].update_platform(
                "buoy", {"update_location_with_sensor": "gps-9"}
            ))


# ============================================================================
# LOCATION OBSERVATIONS
# ============================================================================

class TestLocationObservation:

    def _observation(self, location, sensor="gps-1", in_deployments=("dep-1",), **fields):
        return Observation(
            made_by_sensor=sensor,
            in_deployments=list(in_deployments),
            location=location,
            **fields,
        )

    def test_newer_location_moves_platform_and_subtree(self):
        services, store = _build_services()
        _create(services, "ship", update_location_with_sensor="gps-1",
                location=_make_location(age=timedelta(days=1)))
        _create(services, "mast", is_hosted_by="ship")

        location = _make_location(lon=7.0)
        moved = asyncio.run(services["platform"].update_platforms_with_location_observation(
            self._observation(location)
        ))

        assert [p.id for p in moved] == ["ship"]
        assert store.platforms["ship"].location.geometry == location.geometry
        assert store.platforms["mast"].location.geometry == location.geometry

    def test_older_location_ignored(self):
        services, store = _build_services()
        current = _make_location(age=timedelta(minutes=1))
        _create(services, "ship", update_location_with_sensor="gps-1", location=current)
        moved = asyncio.run(services["platform"].update_platforms_with_location_observation(
            self._observation(_make_location(lon=7.0, age=timedelta(days=1)))
        ))
        assert moved == []
        assert store.platforms["ship"].location.geometry == current.geometry

    def test_other_deployment_ignored(self):
        services, _ = _build_services()
        _create(services, "ship", update_location_with_sensor="gps-1")
        moved = asyncio.run(services["platform"].update_platforms_with_location_observation(
            self._observation(_make_location(), in_deployments=("dep-2",))
        ))
        assert moved == []

    def test_valid_at_from_result_time(self):
        services, store = _build_services()
        _create(services, "ship", update_location_with_sensor="gps-1")
        result_time = datetime.now(timezone.utc) - timedelta(minutes=10)
        location = Location(geometry=Geometry(type="Point", coordinates=[1.0, 1.0]))
        asyncio.run(services["platform"].update_platforms_with_location_observation(
            self._observation(location, result_time=result_time)
        ))
        assert store.platforms["ship"].location.valid_at == result_time

    def test_future_location_rejected(self):
        services, _ = _build_services()
        with pytest.raises(InvalidObservation, match="future"):
            asyncio.run(services["platform"].update_platforms_with_location_observation(
                self._observation(_make_location(age=-timedelta(hours=1)))
            ))

    def test_missing_fields(self):
        services, _ = _build_services()
        with pytest.raises(InvalidObservation):
            asyncio.run(services["platform"].update_platforms_with_location_observation(
                Observation(made_by_sensor="gps-1", in_deployments=["dep-1"])
            ))
        with pytest.raises(InvalidObservation):
            asyncio.run(services["platform"].update_platforms_with_location_observation(
                self._observation(_make_location(), in_deployments=())
            ))


# ============================================================================
# SHARING
# ============================================================================

class TestSharing:

    def test_share_and_unshare(self):
        services, store = _build_services()
        _create(services, "ship")
        _create_sensor(services, "thermo-1", "ship")

        asyncio.run(services["platform"].share_platform_with_deployment("ship", "dep-2"))
        assert store.platforms["ship"].in_deployments == ["dep-1", "dep-2"]
        assert store.live_contexts_for("thermo-1")[0].to_add.in_deployments == ["dep-1", "dep-2"]

        asyncio.run(services["platform"].unshare_platform_with_deployment("ship", "dep-2"))
        assert store.platforms["ship"].in_deployments == ["dep-1"]
        assert store.live_contexts_for("thermo-1")[0].to_add.in_deployments == ["dep-1"]
        assert len(store.contexts_for("thermo-1")) == 3

    def test_share_twice(self):
        services, _ = _build_services()
        _create(services, "ship")
        with pytest.raises(PlatformAlreadyInDeployment):
            asyncio.run(services["platform"].share_platform_with_deployment("ship", "dep-1"))

    def test_unshare_owner(self):
        services, _ = _build_services()
        _create(services, "ship")
        with pytest.raises(CannotUnshareFromOwnerDeployment):
            asyncio.run(services["platform"].unshare_platform_with_deployment("ship", "dep-1"))

    def test_unshare_not_shared(self):
        services, _ = _build_services()
        _create(services, "ship")
        with pytest.raises(PlatformNotSharedWithDeployment):
            asyncio.run(services["platform"].unshare_platform_with_deployment("ship", "dep-2"))

    def test_listing_by_deployment(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "buoy", owner_deployment="dep-2")
        asyncio.run(services["platform"].share_platform_with_deployment("buoy", "dep-1"))
        owned = asyncio.run(services["platform"].get_platforms(owner_deployment="dep-1"))
        visible = asyncio.run(services["platform"].get_platforms(in_deployment="dep-1"))
        assert [p.id for p in owned] == ["ship"]
        assert [p.id for p in visible] == ["buoy", "ship"]


# ============================================================================
# READS
# ============================================================================

class TestTree:

    def test_nested_hosts(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "arm", is_hosted_by="mast")
        _create_sensor(services, "anemometer", "arm")
        _create_sensor(services, "barometer", "ship")

        tree = asyncio.run(services["platform"].build_nested_hosts("ship"))

        assert tree["id"] == "ship"
        assert tree["type"] == "platform"
        hosts = {node["id"]: node for node in tree["hosts"]}
        assert hosts["barometer"]["type"] == "sensor"
        arm = hosts["mast"]["hosts"][0]
        assert arm["id"] == "arm"
        assert arm["hosts"] == [{"id": "anemometer", "name": None, "type": "sensor"}]

    def test_descendants_parents_first(self):
        services, _ = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "arm", is_hosted_by="mast")
        _create(services, "crane", is_hosted_by="ship")
        descendants = asyncio.run(services["platform"].get_descendants_of_platform("ship"))
        assert [p.id for p in descendants] == ["crane", "mast", "arm"]


# ============================================================================
# DELETE
# ============================================================================

class TestDeletePlatform:

    def test_subtree_cut_and_sensors_released(self):
        services, store = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "arm", is_hosted_by="mast")
        _create(services, "vane", is_hosted_by="arm")
        _create_sensor(services, "thermo-1", "mast")
        _create_sensor(services, "anemometer", "vane")

        asyncio.run(services["platform"].delete_platform("mast"))

        assert store.platforms["arm"].is_hosted_by is None
        assert store.platforms["arm"].hosted_by_path == []
        assert store.platforms["vane"].is_hosted_by == "arm"
        assert store.platforms["vane"].hosted_by_path == ["arm"]

        thermo = store.sensors["thermo-1"]
        assert thermo.is_hosted_by is None
        assert thermo.has_deployment == "dep-1"
        assert store.live_contexts_for("thermo-1")[0].to_add.hosted_by_path is None
        assert store.live_contexts_for("anemometer")[0].to_add.hosted_by_path == ["arm", "vane"]

        with pytest.raises(PlatformNotFound):
            asyncio.run(services["platform"].get_platform("mast"))

    def test_permanent_host_sensors_leave_deployment(self):
        services, store = _build_services()
        store.permanent_hosts["box-1"] = PermanentHost(
            id="box-1", name="Box", registration_key="ABCDEFGHJK", registered_as="box-1-k7q",
        )
        _create(services, "box-1-k7q")
        store.sensors["box-1-temp"] = Sensor(
            id="box-1-temp", permanent_host="box-1", has_deployment="dep-1", is_hosted_by="box-1-k7q",
        )

        asyncio.run(services["platform"].delete_platform("box-1-k7q"))

        sensor = store.sensors["box-1-temp"]
        assert sensor.has_deployment is None
        assert sensor.is_hosted_by is None
        assert store.permanent_hosts["box-1"].registered_as is None


class TestDeploymentDeleted:

    def test_cleanup_summary(self):
        services, store = _build_services()
        _create(services, "ship")
        _create(services, "mast", is_hosted_by="ship")
        _create(services, "buoy", owner_deployment="dep-2")
        asyncio.run(services["platform"].share_platform_with_deployment("buoy", "dep-1"))
        _create(services, "winch", owner_deployment="open-data")
        asyncio.run(services["platform"].share_platform_with_deployment("winch", "dep-1"))
        _create(services, "float", owner_deployment="dep-2", is_hosted_by="winch")
        _create_sensor(services, "thermo-1", "mast")

        summary = asyncio.run(services["platform"].process_deployment_deleted("dep-1"))

        assert summary["platforms_deleted"] == 2
        assert summary["platforms_unshared"] == 2
        assert summary["sensors_released"] == 1
        assert store.platforms["buoy"].in_deployments == ["dep-2"]
        assert store.sensors["thermo-1"].has_deployment is None
        assert store.live_contexts_for("thermo-1")[0].to_add.in_deployments is None
        assert asyncio.run(services["platform"].get_platforms(owner_deployment="dep-1")) == []

    def test_foreign_platforms_unhosted(self):
        services, store = _build_services()
        _create(services, "ship", owner_deployment="open-data")
        _create(services, "mast", owner_deployment="dep-1", is_hosted_by="ship")
        summary = asyncio.run(services["platform"].process_deployment_deleted("open-data"))
        assert summary["platforms_unhosted"] == 1
        assert store.platforms["mast"].is_hosted_by is None
        assert store.platforms["mast"].hosted_by_path == []


class TestDeploymentMadePrivate:

    def _public_tree(self):
        services, store = _build_services()
        _create(services, "ship", owner_deployment="open-data")
        _create(services, "crane", is_hosted_by="ship")
        _create(services, "buoy", owner_deployment="dep-2", is_hosted_by="ship")
        asyncio.run(services["platform"].share_platform_with_deployment("buoy", "open-data"))
        _create_sensor(services, "thermo-1", "crane")
        _create_sensor(services, "thermo-2", "buoy", deployment="dep-2")
        store.add_deployment("open-data", public=False)
        return services, store

    def test_foreign_platforms_detached(self):
        services, store = self._public_tree()
        assert store.live_contexts_for("thermo-1")[0].to_add.in_deployments == ["dep-1", "open-data"]

        summary = asyncio.run(services["platform"].process_deployment_made_private("open-data"))

        assert summary["platforms_unhosted"] == 1
        assert store.platforms["crane"].is_hosted_by is None
        assert store.platforms["crane"].hosted_by_path == []
        assert store.platforms["buoy"].hosted_by_path == ["ship"]

        live = store.live_contexts_for("thermo-1")[0]
        assert live.to_add.hosted_by_path == ["crane"]
        assert live.to_add.in_deployments == ["dep-1"]
        assert len(store.contexts_for("thermo-1")) == 2

    def test_shared_platforms_stay(self):
        services, store = self._public_tree()
        before = store.live_contexts_for("thermo-2")[0]

        asyncio.run(services["platform"].process_deployment_made_private("open-data"))

        assert store.live_contexts_for("thermo-2")[0].id == before.id
        assert before.to_add.hosted_by_path == ["ship", "buoy"]

    def test_deeper_foreign_platforms_detached_from_their_own_host(self):
        services, store = _build_services()
        store.add_deployment("dep-1", public=True)
        _create(services, "ship", owner_deployment="open-data")
        _create(services, "crane", is_hosted_by="ship")
        _create(services, "hook", owner_deployment="open-data", is_hosted_by="crane")
        _create(services, "winch", owner_deployment="dep-2", is_hosted_by="hook")
        store.add_deployment("open-data", public=False)

        summary = asyncio.run(services["platform"].process_deployment_made_private("open-data"))

        assert summary["platforms_unhosted"] == 2
        assert store.platforms["hook"].hosted_by_path == ["crane"]
        assert store.platforms["winch"].is_hosted_by is None
        assert store.platforms["winch"].hosted_by_path == []

    def test_unshared_sensors_released(self):
        services, store = _build_services()
        _create(services, "ship", owner_deployment="open-data")
        asyncio.run(services["platform"].share_platform_with_deployment("ship", "dep-2"))
        _create_sensor(services, "thermo-3", "ship", deployment="dep-2")
        asyncio.run(services["platform"].unshare_platform_with_deployment("ship", "dep-2"))
        store.add_deployment("open-data", public=False)

        summary = asyncio.run(services["platform"].process_deployment_made_private("open-data"))

        assert summary["sensors_released"] == 1
        sensor = store.sensors["thermo-3"]
        assert sensor.is_hosted_by is None
        assert sensor.has_deployment == "dep-2"
        live = store.live_contexts_for("thermo-3")[0]
        assert live.to_add.hosted_by_path is None
        assert live.to_add.in_deployments == ["dep-2"]

    def test_still_public(self):
        services, _ = _build_services()
        with pytest.raises(DeploymentIsPublic):
            asyncio.run(services["platform"].process_deployment_made_private("open-data"))

    def test_unknown_deployment(self):
        services, _ = _build_services()
        with pytest.raises(DeploymentNotFound):
            asyncio.run(services["platform"].process_deployment_made_private("dep-9"))
