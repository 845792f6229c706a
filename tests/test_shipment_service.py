import time

import pytest

from geoservice.shipment_service import (
    DEFAULT_SHIPMENT_LIMIT,
    DEFAULT_SHIPMENT_RADIUS_KM,
    MAX_SHIPMENT_LIMIT,
    NearbyShipmentRequest,
    ShipmentSearchDisabled,
    ShipmentService,
)


class FakeRepo:
    def __init__(self, rows=None, error=None):
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls = []

    def find_nearby_shipments(self, lat, lng, radius_km, limit):
        self.calls.append((lat, lng, radius_km, limit))
        if self.error is not None:
            raise self.error
        return self.rows


def test_disabled_without_repo():
    svc = ShipmentService(None)
    with pytest.raises(ShipmentSearchDisabled) as info:
        svc.search_nearby(NearbyShipmentRequest(lat=35.7, lng=51.4))
    assert "SHIPMENT_DB_DSN" in str(info.value)


def test_defaults_applied_when_request_empty():
    repo = FakeRepo()
    svc = ShipmentService(repo, 0, 0)
    resp = svc.search_nearby(NearbyShipmentRequest(lat=35.7, lng=51.4))
    assert repo.calls == [(35.7, 51.4, DEFAULT_SHIPMENT_RADIUS_KM, DEFAULT_SHIPMENT_LIMIT)]
    assert resp.query.radius_km == DEFAULT_SHIPMENT_RADIUS_KM
    assert resp.query.limit == DEFAULT_SHIPMENT_LIMIT


def test_service_defaults_used():
    repo = FakeRepo()
    svc = ShipmentService(repo, 3.5, 40)
    svc.search_nearby(NearbyShipmentRequest(lat=1.0, lng=2.0))
    assert repo.calls == [(1.0, 2.0, 3.5, 40)]


def test_default_limit_capped():
    repo = FakeRepo()
    svc = ShipmentService(repo, 5, 100000)
    assert svc.default_limit == MAX_SHIPMENT_LIMIT


def test_request_values_win_and_limit_capped():
    repo = FakeRepo()
    svc = ShipmentService(repo)
    resp = svc.search_nearby(NearbyShipmentRequest(lat=1.0, lng=2.0, radius_km=7.0, limit=9999))
    assert repo.calls == [(1.0, 2.0, 7.0, MAX_SHIPMENT_LIMIT)]
    assert resp.query.limit == MAX_SHIPMENT_LIMIT
    assert resp.query.radius_km == 7.0


def test_response_carries_rows_and_count():
    rows = [{"id": 1, "distance_km": 0.5}, {"id": 2, "distance_km": 1.5}]
    svc = ShipmentService(FakeRepo(rows))
    before = int(time.time() * 1000)
    resp = svc.search_nearby(NearbyShipmentRequest(lat=35.7, lng=51.4, limit=25))
    after = int(time.time() * 1000)
    assert resp.type == "shipment.nearby"
    assert resp.shipments == rows
    assert resp.count == len(rows)
    assert before <= resp.timestamp <= after
    assert (resp.query.lat, resp.query.lng) == (35.7, 51.4)


def test_repo_errors_propagate():
    svc = ShipmentService(FakeRepo(error=ConnectionError("down")))
    with pytest.raises(ConnectionError):
        svc.search_nearby(NearbyShipmentRequest(lat=0.0, lng=0.0))