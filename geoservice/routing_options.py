"""Route request option normalisation and per-request metadata."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ROUTE_ALTERNATIVES = 1
MAX_ROUTE_ALTERNATIVES = 3


@dataclass
class RouteMeta:
    """How a route request was served."""

    backend: str = ""
    cache_hit: bool = False
    mode: str = ""
    alternatives: int = 0


def route_mode(vehicle_type: str, mode: str) -> str:
    """Return the requested mode; a vehicle type takes precedence."""
    return vehicle_type or mode


def normalize_alternatives(n: int, max_allowed: int | None = None) -> int:
    """Clamp the number of requested alternatives to the server-side maximum.

    A non-positive request yields the default; the hard maximum is never exceeded.
    """
    limit = max_allowed if max_allowed is not None and max_allowed > 0 else MAX_ROUTE_ALTERNATIVES
    limit = min(limit, MAX_ROUTE_ALTERNATIVES)
    if n <= 0:
        return DEFAULT_ROUTE_ALTERNATIVES
    return min(n, limit)