"""Great-circle geometry helpers and GPS smoothing."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Sequence

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class PolyPoint:
    """A single vertex of a polyline."""

    lat: float
    lng: float


def _to_rad(deg: float) -> float:
    return deg * math.pi / 180


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _round_half_away(value: float) -> float:
    """Round to the nearest integer, halves away from zero."""
    if not math.isfinite(value):
        return value
    whole = math.trunc(value)
    if abs(value - whole) >= 0.5:
        whole += math.copysign(1.0, value)
    return float(whole)


def haversine(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in km between two coordinates."""
    d_lat = _to_rad(lat2 - lat1)
    d_lng = _to_rad(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(_to_rad(lat1)) * math.cos(_to_rad(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bearing_rad(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the initial bearing from the first to the second point, in radians."""
    phi1 = _to_rad(lat1)
    phi2 = _to_rad(lat2)
    d_lambda = _to_rad(lng2 - lng1)
    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return math.atan2(y, x)


def cross_track_distance(
    p_lat: float, p_lng: float, a_lat: float, a_lng: float, b_lat: float, b_lng: float
) -> tuple[float, bool]:
    """Return the perpendicular distance in km from P to segment A→B.

    The second value tells whether the foot of the perpendicular lies on the
    segment rather than beyond one of its endpoints.
    """
    d_ap = haversine(a_lat, a_lng, p_lat, p_lng)
    d_ab = haversine(a_lat, a_lng, b_lat, b_lng)
    if d_ab == 0:
        return d_ap, False

    theta_ap = bearing_rad(a_lat, a_lng, p_lat, p_lng)
    theta_ab = bearing_rad(a_lat, a_lng, b_lat, b_lng)

    sin_xt = _clamp(math.sin(d_ap / EARTH_RADIUS_KM) * math.sin(theta_ap - theta_ab))
    d_xt_rad = math.asin(sin_xt)
    d_xt = abs(d_xt_rad) * EARTH_RADIUS_KM

    cos_at = _clamp(math.cos(d_ap / EARTH_RADIUS_KM) / math.cos(d_xt_rad))
    d_at = math.acos(cos_at) * EARTH_RADIUS_KM
    within = 0 <= d_at <= d_ab
    return d_xt, within


def min_distance_to_polyline(lat: float, lng: float, pts: Sequence[PolyPoint]) -> float:
    """Return the smallest distance in km from a point to any polyline segment.

    An empty polyline yields the largest representable float.
    """
    if not pts:
        return sys.float_info.max
    if len(pts) == 1:
        return haversine(lat, lng, pts[0].lat, pts[0].lng)

    best = sys.float_info.max
    for a, b in zip(pts, pts[1:]):
        d_xt, within = cross_track_distance(lat, lng, a.lat, a.lng, b.lat, b.lng)
        if within:
            dist = d_xt
        else:
            dist = min(haversine(lat, lng, a.lat, a.lng), haversine(lat, lng, b.lat, b.lng))
        best = min(best, dist)
    return best


def valid_coords(lat: float, lng: float) -> bool:
    """Return True when lat/lng are within legal bounds."""
    return -90 <= lat <= 90 and -180 <= lng <= 180


def round_to(value: float, precision: int) -> float:
    """Round value to the given number of decimal places, halves away from zero."""
    ratio = math.pow(10, precision)
    return _round_half_away(value * ratio) / ratio


def smooth_gps(
    raw_lat: float, raw_lng: float, prev_lat: float, prev_lng: float, alpha: float
) -> tuple[float, float]:
    """Apply an exponential moving average to a GPS fix.

    alpha is the weight of the new observation. A previous position of (0, 0)
    counts as no history and the raw fix is returned unchanged.
    """
    if prev_lat == 0 and prev_lng == 0:
        return raw_lat, raw_lng
    return (
        alpha * raw_lat + (1 - alpha) * prev_lat,
        alpha * raw_lng + (1 - alpha) * prev_lng,
    )