"""Nearby shipment search with request normalisation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol

DEFAULT_SHIPMENT_RADIUS_KM = 10.0
DEFAULT_SHIPMENT_LIMIT = 100
MAX_SHIPMENT_LIMIT = 500


class ShipmentSearchDisabled(RuntimeError):
    """Raised when no shipment database has been configured."""

    def __init__(self) -> None:
        super().__init__(
            "shipment search database is not configured; set SHIPMENT_DB_DSN, "
            "SHIPMENT_DB_DRIVER, SHIPMENT_TABLE, SHIPMENT_ORIGIN_LAT_COLUMN, "
            "and SHIPMENT_ORIGIN_LNG_COLUMN"
        )


class ShipmentRepository(Protocol):
    """Read-only storage that can find shipments near a point."""

    def find_nearby_shipments(
        self, lat: float, lng: float, radius_km: float, limit: int
    ) -> list[dict[str, Any]]: ...


@dataclass
class NearbyShipmentRequest:
    """A passenger position and optional search bounds."""

    lat: float
    lng: float
    radius_km: float = 0.0
    limit: int = 0


@dataclass
class NearbyShipmentQuery:
    """The effective search parameters after defaults were applied."""

    lat: float
    lng: float
    radius_km: float
    limit: int


@dataclass
class NearbyShipmentResponse:
    """Shipments found near the queried point."""

    query: NearbyShipmentQuery
    timestamp: int
    shipments: list[dict[str, Any]] = field(default_factory=list)
    type: str = "shipment.nearby"

    @property
    def count(self) -> int:
        return len(self.shipments)


def _clamp_limit(limit: int) -> int:
    return min(limit, MAX_SHIPMENT_LIMIT)


class ShipmentService:
    """Normalises nearby shipment requests before querying the repository."""

    def __init__(
        self,
        repo: ShipmentRepository | None,
        default_radius_km: float = DEFAULT_SHIPMENT_RADIUS_KM,
        default_limit: int = DEFAULT_SHIPMENT_LIMIT,
    ) -> None:
        self.repo = repo
        self.default_radius_km = (
            default_radius_km if default_radius_km > 0 else DEFAULT_SHIPMENT_RADIUS_KM
        )
        self.default_limit = _clamp_limit(
            default_limit if default_limit > 0 else DEFAULT_SHIPMENT_LIMIT
        )

    def search_nearby(self, request: NearbyShipmentRequest) -> NearbyShipmentResponse:
        """Return shipments whose origin lies within the requested radius."""
        if self.repo is None:
            raise ShipmentSearchDisabled()

        radius_km = request.radius_km if request.radius_km > 0 else self.default_radius_km
        limit = _clamp_limit(request.limit if request.limit > 0 else self.default_limit)

        rows = self.repo.find_nearby_shipments(request.lat, request.lng, radius_km, limit)
        return NearbyShipmentResponse(
            query=NearbyShipmentQuery(
                lat=request.lat, lng=request.lng, radius_km=radius_km, limit=limit
            ),
            timestamp=int(time.time() * 1000),
            shipments=list(rows),
        )