import time

import pytest

from geoservice.drivers import (
    DriverIdRequired,
    DriverLocationDisabled,
    DriverLocationRequest,
    DriverLocationState,
    DriverService,
)


class FakeStore:
    def __init__(self, nearby=None):
        self.saved = []
        self.queries = []
        self.nearby = nearby or []

    def set_driver_location(self, geo_key, stream_key, state):
        self.saved.append((geo_key, stream_key, state))

    def find_nearby_drivers(self, geo_key, lat, lng, radius_km, limit):
        self.queries.append((geo_key, lat, lng, radius_km, limit))
        return self.nearby


def test_update_location_stores_state_with_trimmed_keys():
    store = FakeStore()
    svc = DriverService(store, " drivers:geo ", " drivers:stream ")
    resp = svc.update_location(
        DriverLocationRequest(driver_id="  d-7 ", lat=35.7, lng=51.4, timestamp_ms=1234)
    )
    geo_key, stream_key, state = store.saved[0]
    assert (geo_key, stream_key) == ("drivers:geo", "drivers:stream")
    assert state.id == "d-7"
    assert resp.driver.id == "d-7"
    assert resp.driver.timestamp_ms == 1234
    assert resp.type == "driver.location.updated"


def test_update_location_accepts_numeric_id():
    store = FakeStore()
    svc = DriverService(store, "geo")
    resp = svc.update_location(DriverLocationRequest(driver_id=42, lat=1.0, lng=2.0))
    assert resp.driver.id == "42"


def test_update_location_fills_missing_timestamp():
    store = FakeStore()
    svc = DriverService(store, "geo")
    before = int(time.time() * 1000)
    resp = svc.update_location(DriverLocationRequest(driver_id="a", lat=1.0, lng=2.0))
    after = int(time.time() * 1000)
    assert before <= resp.driver.timestamp_ms <= after
    assert resp.driver.timestamp_ms == resp.timestamp


def test_update_location_requires_driver_id():
    svc = DriverService(FakeStore(), "geo")
    with pytest.raises(DriverIdRequired):
        svc.update_location(DriverLocationRequest(driver_id="   ", lat=1.0, lng=2.0))


@pytest.mark.parametrize("store,geo_key", [(None, "geo"), (FakeStore(), "  ")])
def test_disabled_service_raises(store, geo_key):
    svc = DriverService(store, geo_key)
    with pytest.raises(DriverLocationDisabled):
        svc.update_location(DriverLocationRequest(driver_id="a", lat=1.0, lng=2.0))
    with pytest.raises(DriverLocationDisabled):
        svc.search_nearby(1.0, 2.0)


def test_search_nearby_applies_defaults():
    store = FakeStore()
    svc = DriverService(store, "geo")
    resp = svc.search_nearby(35.7, 51.4)
    assert store.queries[0] == ("geo", 35.7, 51.4, 20.0, 100)
    assert resp.query.radius_km == 20.0
    assert resp.query.limit == 100
    assert resp.count == 0


def test_search_nearby_clamps_limit():
    store = FakeStore()
    svc = DriverService(store, "geo", default_limit=10_000)
    assert svc.default_limit == 500
    resp = svc.search_nearby(1.0, 2.0, radius_km=3.5, limit=9999)
    assert resp.query.limit == 500
    assert resp.query.radius_km == 3.5


def test_search_nearby_maps_states_in_order():
    states = [
        DriverLocationState(id="x", lat=1.0, lng=2.0, timestamp_ms=10, distance_km=0.5),
        DriverLocationState(id="y", lat=1.1, lng=2.1, timestamp_ms=11, distance_km=1.5),
    ]
    svc = DriverService(FakeStore(states), "geo")
    resp = svc.search_nearby(1.0, 2.0, radius_km=5, limit=2)
    assert [d.id for d in resp.drivers] == ["x", "y"]
    assert [d.distance_km for d in resp.drivers] == [0.5, 1.5]
    assert resp.count == 2
    assert resp.type == "driver.nearby"