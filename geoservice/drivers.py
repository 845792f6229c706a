"""Live driver positions: location updates and nearby-driver search."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol

from geoservice.shipment_service import DEFAULT_SHIPMENT_LIMIT, MAX_SHIPMENT_LIMIT

DEFAULT_DRIVER_SEARCH_RADIUS_KM = 20.0


class DriverLocationDisabled(RuntimeError):
    """Raised when no driver location store has been configured."""

    def __init__(self) -> None:
        super().__init__("driver location redis is not configured")


class DriverIdRequired(ValueError):
    """Raised when a location update carries no driver id."""

    def __init__(self) -> None:
        super().__init__("driver_id is required")


@dataclass
class DriverLocationState:
    """A driver position as kept by the location store."""

    id: str
    lat: float
    lng: float
    timestamp_ms: int
    distance_km: float = 0.0


class DriverLocationStore(Protocol):
    """Geo-indexed storage for driver positions."""

    def set_driver_location(
        self, geo_key: str, stream_key: str, state: DriverLocationState
    ) -> None: ...

    def find_nearby_drivers(
        self, geo_key: str, lat: float, lng: float, radius_km: float, limit: int
    ) -> list[DriverLocationState]: ...


@dataclass
class DriverLocation:
    """A driver position as returned to clients."""

    id: str
    lat: float
    lng: float
    timestamp_ms: int
    distance_km: float | None = None


@dataclass
class DriverLocationRequest:
    """An incoming driver position; the id may be given as a string or a number."""

    driver_id: str | int
    lat: float
    lng: float
    timestamp_ms: int = 0


@dataclass
class DriverLocationResponse:
    """Acknowledgement of a stored driver position."""

    driver: DriverLocation
    timestamp: int
    type: str = "driver.location.updated"


@dataclass
class NearbyDriverQuery:
    """The effective search parameters after defaults were applied."""

    lat: float
    lng: float
    radius_km: float
    limit: int


@dataclass
class NearbyDriverResponse:
    """Drivers found near the queried point."""

    query: NearbyDriverQuery
    timestamp: int
    drivers: list[DriverLocation] = field(default_factory=list)
    type: str = "driver.nearby"

    @property
    def count(self) -> int:
        return len(self.drivers)


def _now_ms() -> int:
    return int(time.time() * 1000)


class DriverService:
    """Stores driver positions and finds drivers near a point."""

    def __init__(
        self,
        store: DriverLocationStore | None,
        geo_key: str,
        stream_key: str = "",
        default_radius_km: float = DEFAULT_DRIVER_SEARCH_RADIUS_KM,
        default_limit: int = DEFAULT_SHIPMENT_LIMIT,
    ) -> None:
        self.store = store
        self.geo_key = geo_key.strip()
        self.stream_key = stream_key.strip()
        self.default_radius_km = (
            default_radius_km if default_radius_km > 0 else DEFAULT_DRIVER_SEARCH_RADIUS_KM
        )
        limit = default_limit if default_limit > 0 else DEFAULT_SHIPMENT_LIMIT
        self.default_limit = min(limit, MAX_SHIPMENT_LIMIT)

    def _require_store(self) -> DriverLocationStore:
        if self.store is None or not self.geo_key:
            raise DriverLocationDisabled()
        return self.store

    def update_location(self, request: DriverLocationRequest) -> DriverLocationResponse:
        """Store a driver position; a missing timestamp is set to now."""
        store = self._require_store()

        driver_id = str(request.driver_id).strip()
        if not driver_id:
            raise DriverIdRequired()

        now = _now_ms()
        timestamp_ms = request.timestamp_ms if request.timestamp_ms > 0 else now
        state = DriverLocationState(
            id=driver_id, lat=request.lat, lng=request.lng, timestamp_ms=timestamp_ms
        )
        store.set_driver_location(self.geo_key, self.stream_key, state)

        return DriverLocationResponse(
            driver=DriverLocation(
                id=state.id, lat=state.lat, lng=state.lng, timestamp_ms=state.timestamp_ms
            ),
            timestamp=now,
        )

    def search_nearby(
        self, lat: float, lng: float, radius_km: float = 0.0, limit: int = 0
    ) -> NearbyDriverResponse:
        """Return drivers within radius_km of the point, as ordered by the store."""
        store = self._require_store()
        if radius_km <= 0:
            radius_km = self.default_radius_km
        if limit <= 0:
            limit = self.default_limit
        limit = min(limit, MAX_SHIPMENT_LIMIT)

        states = store.find_nearby_drivers(self.geo_key, lat, lng, radius_km, limit)
        drivers = [
            DriverLocation(
                id=s.id,
                lat=s.lat,
                lng=s.lng,
                timestamp_ms=s.timestamp_ms,
                distance_km=s.distance_km,
            )
            for s in states
        ]
        return NearbyDriverResponse(
            query=NearbyDriverQuery(lat=lat, lng=lng, radius_km=radius_km, limit=limit),
            timestamp=_now_ms(),
            drivers=drivers,
        )