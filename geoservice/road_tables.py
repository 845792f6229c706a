"""Naming and DDL for per-region road segment tables."""

from __future__ import annotations

import re
from typing import Iterable

BASE_TABLE = "road_segments"
_TABLE_PREFIX = "road_segments_"
_REGION_RE = re.compile(r"[a-z][a-z0-9_]*")


def quote_ident(name: str) -> str:
    """Quote an SQL identifier with double quotes."""
    return '"' + name.replace('"', '""') + '"'


def road_segments_table_name(region: str) -> str:
    """Return the road segments table for a region slug."""
    region = region.strip().lower()
    if not region:
        return BASE_TABLE
    region = region.removeprefix(_TABLE_PREFIX)
    if not _REGION_RE.fullmatch(region):
        raise ValueError(f'invalid road region "{region}"; use a slug like isfahan or tehran')
    return _TABLE_PREFIX + region


def road_graph_tables(regions: Iterable[str] | None) -> list[str]:
    """Return the tables a road graph is loaded from; the base table when none are named."""
    tables = [
        road_segments_table_name(region)
        for region in (r.strip() for r in regions or ())
        if region
    ]
    return tables or [BASE_TABLE]


def road_segments_table_statements(table: str) -> list[str]:
    """Return the statements that create a region table and its indexes.

    The base table needs none; an invalid table name raises ValueError.
    """
    if table == BASE_TABLE:
        return []
    if not _REGION_RE.fullmatch(table.removeprefix(_TABLE_PREFIX)):
        raise ValueError(f'invalid road segments table "{table}"')

    q_table = quote_ident(table)

    def index(suffix: str, body: str) -> str:
        return f"CREATE INDEX IF NOT EXISTS {quote_ident(f'idx_{table}_{suffix}')} ON {q_table} {body}"

    return [
        f"CREATE TABLE IF NOT EXISTS {q_table} (LIKE road_segments INCLUDING DEFAULTS INCLUDING CONSTRAINTS)",
        index("from_node", "(from_node_id)"),
        index("to_node", "(to_node_id)"),
        index("osm_edge", "(osm_way_id, from_node_id, to_node_id)"),
        index("highway", "(highway_type)"),
        index("car", "(car_allowed)"),
        index("region", "(import_region)"),
        index("car_from", "(from_node_id) WHERE car_allowed"),
        index("motorcycle_from", "(from_node_id) WHERE motorcycle_allowed"),
        index("bus_from", "(from_node_id) WHERE bus_allowed"),
        index("foot_from", "(from_node_id) WHERE foot_allowed"),
        index("imported_brin", "USING BRIN (imported_at)"),
        index("geom_gist", "USING GIST (geom)"),
    ]