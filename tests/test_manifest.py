import json

import pytest

from steering.core.errors import NoConfigurationError
from steering.core.locations import (
    ServiceLocation,
    ServiceLocationTable,
    SteeringParameters,
    SteeringSnapshot,
)
from steering.core.manifest import ManifestGenerator


@pytest.fixture
def snapshot():
    return SteeringSnapshot(
        parameters=SteeringParameters(reload_uri="http://host/dash.dcsm", ttl_seconds=100),
        table=ServiceLocationTable([
            ServiceLocation("b2", "https://cdn2/"),
            ServiceLocation("b1", "https://cdn1/"),
        ]),
        revision=1,
    )


def test_generate_matches_dcsm_layout(snapshot):
    body = ManifestGenerator().generate(snapshot, "abc")
    assert json.loads(body) == {
        "VERSION": 1,
        "TTL": 100,
        "RELOAD-URI": "http://host/dash.dcsm?sessionId=abc",
        "SERVICE-LOCATION-PRIORITY": ["b2", "b1"],
    }


def test_field_types(snapshot):
    manifest = json.loads(ManifestGenerator().generate(snapshot, "abc"))
    assert isinstance(manifest["VERSION"], int)
    assert isinstance(manifest["TTL"], int)
    assert isinstance(manifest["RELOAD-URI"], str)
    assert isinstance(manifest["SERVICE-LOCATION-PRIORITY"], list)


def test_unconfigured_snapshot_raises():
    empty = SteeringSnapshot(parameters=SteeringParameters(reload_uri="http://host/dash.dcsm", ttl_seconds=10))
    with pytest.raises(NoConfigurationError):
        ManifestGenerator().generate(empty, "abc")


def test_hints_do_not_change_priority(snapshot):
    generator = ManifestGenerator()
    plain = json.loads(generator.generate(snapshot, "abc"))
    hinted = json.loads(generator.generate(snapshot, "abc", pathway="b1", throughput="9000000"))
    assert hinted["SERVICE-LOCATION-PRIORITY"] == plain["SERVICE-LOCATION-PRIORITY"]


def test_session_id_is_echoed_verbatim(snapshot):
    manifest = json.loads(ManifestGenerator().generate(snapshot, "3f2c-session"))
    assert manifest["RELOAD-URI"].endswith("?sessionId=3f2c-session")


def test_build_returns_model(snapshot):
    manifest = ManifestGenerator().build(snapshot, "abc")
    assert manifest.SERVICE_LOCATION_PRIORITY == ["b2", "b1"]
    assert manifest.model_dump(by_alias=True)["RELOAD-URI"] == "http://host/dash.dcsm?sessionId=abc"
