"""Read-only nearby-shipment search against an external SQL database."""

from __future__ import annotations

import math
import re
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

SHIPMENT_EARTH_RADIUS_KM = 6371.0

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass
class ShipmentDBConfig:
    """Where shipments live and which columns hold the origin coordinates."""

    driver: str = ""
    dsn: str = ""
    table: str = ""
    lat_column: str = ""
    lng_column: str = ""


class _Placeholders:
    """Collects query arguments and hands out dialect placeholders."""

    def __init__(self, dialect: str) -> None:
        self.dialect = dialect
        self.values: list[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        if self.dialect == "postgres":
            return f"${len(self.values)}"
        return "?"


@dataclass
class ShipmentDB:
    """A read-only view of the shipment table over a DB-API connection.

    table, lat_column and lng_column hold already quoted identifiers.
    """

    dialect: str
    table: str
    lat_column: str
    lng_column: str
    connection: Any = None

    def close(self) -> None:
        """Release the underlying connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def build_nearby_query(
        self, lat: float, lng: float, radius_km: float, limit: int
    ) -> tuple[str, list[Any]]:
        """Return the nearby-search SQL and its arguments."""
        args = _Placeholders(self.dialect)
        lat_ref = coordinate_expression(self.dialect, "s." + self.lat_column)
        lng_ref = coordinate_expression(self.dialect, "s." + self.lng_column)

        p_lat_a = args.add(lat)
        p_lat_b = args.add(lat)
        p_lng = args.add(lng)
        distance_expr = (
            f"{SHIPMENT_EARTH_RADIUS_KM:f} * 2 * ASIN(LEAST(1, SQRT("
            f"POWER(SIN(RADIANS(({lat_ref} - {p_lat_a}) / 2)), 2) + "
            f"COS(RADIANS({p_lat_b})) * COS(RADIANS({lat_ref})) * "
            f"POWER(SIN(RADIANS(({lng_ref} - {p_lng}) / 2)), 2))))"
        )

        min_lat, max_lat, min_lng, max_lng = shipment_bounding_box(lat, lng, radius_km)
        query = f"""
SELECT *
FROM (
    SELECT s.*, {distance_expr} AS distance_km
    FROM {self.table} AS s
    WHERE {lat_ref} IS NOT NULL
      AND {lng_ref} IS NOT NULL
      AND {lat_ref} BETWEEN {args.add(min_lat)} AND {args.add(max_lat)}
      AND {lng_ref} BETWEEN {args.add(min_lng)} AND {args.add(max_lng)}
) AS nearby
WHERE distance_km <= {args.add(radius_km)}
ORDER BY distance_km ASC
LIMIT {args.add(limit)}"""
        return query, args.values

    def find_nearby_shipments(
        self, lat: float, lng: float, radius_km: float, limit: int
    ) -> list[dict[str, Any]]:
        """Return shipment rows whose origin lies within radius_km, nearest first."""
        if self.connection is None:
            raise RuntimeError("shipment db is not configured")
        if radius_km <= 0:
            raise ValueError("radius_km must be positive")
        if limit <= 0:
            raise ValueError("limit must be positive")

        query, args = self.build_nearby_query(lat, lng, radius_km, limit)
        try:
            with closing(self.connection.cursor()) as cursor:
                cursor.execute(query, args)
                columns = [col[0] for col in cursor.description or ()]
                rows = cursor.fetchall()
        except Exception as exc:
            raise RuntimeError(f"shipment db: nearby query: {exc}") from exc

        return [
            {col: normalize_sql_value(col, value) for col, value in zip(columns, row)}
            for row in rows
        ]


def open_shipment_db(config: ShipmentDBConfig, connection: Any) -> ShipmentDB | None:
    """Validate the config and wrap a DB-API connection; None when no DSN is set."""
    if not config.dsn.strip():
        return None

    _, dialect = normalize_shipment_driver(config.driver)
    try:
        table = quote_qualified_identifier(dialect, config.table)
    except ValueError as exc:
        raise ValueError(f"shipment table: {exc}") from exc
    try:
        lat_column = quote_identifier(dialect, config.lat_column)
    except ValueError as exc:
        raise ValueError(f"shipment lat column: {exc}") from exc
    try:
        lng_column = quote_identifier(dialect, config.lng_column)
    except ValueError as exc:
        raise ValueError(f"shipment lng column: {exc}") from exc

    if connection is None:
        raise ValueError("shipment db: open: no connection")
    try:
        with closing(connection.cursor()) as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchall()
    except Exception as exc:
        connection.close()
        raise ConnectionError(f"shipment db: ping: {exc}") from exc

    return ShipmentDB(
        dialect=dialect,
        table=table,
        lat_column=lat_column,
        lng_column=lng_column,
        connection=connection,
    )


def shipment_bounding_box(
    lat: float, lng: float, radius_km: float
) -> tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lng, max_lng) enclosing the search circle."""
    lat_delta = radius_km / 111.32
    cos_lat = math.cos(lat * math.pi / 180)
    lng_delta = 180.0
    if abs(cos_lat) > 0.000001:
        lng_delta = radius_km / (111.32 * abs(cos_lat))
    return (
        max(-90.0, lat - lat_delta),
        min(90.0, lat + lat_delta),
        max(-180.0, lng - lng_delta),
        min(180.0, lng + lng_delta),
    )


def coordinate_expression(dialect: str, column_ref: str) -> str:
    """Return SQL that reads a coordinate column as a number, or NULL."""
    if dialect == "postgres":
        pattern = r"'^-?[0-9]+(\.[0-9]+)?$'"
        return f"CASE WHEN {column_ref}::text ~ {pattern} THEN {column_ref}::double precision END"
    return f"CAST(NULLIF({column_ref}, '') AS DECIMAL(18, 10))"


def _format_timestamp(value: datetime) -> str:
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    frac = f"{value.microsecond:06d}".rstrip("0")
    if frac:
        text += "." + frac
    offset = value.utcoffset()
    if offset is None or offset == timezone.utc.utcoffset(None):
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def normalize_sql_value(column: str, value: Any) -> Any:
    """Turn a raw database value into something JSON-friendly."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if column == "distance_km":
            try:
                return float(raw)
            except ValueError:
                pass
        return raw.decode("utf-8", errors="replace")
    if isinstance(value, datetime):
        return _format_timestamp(value)
    if isinstance(value, Decimal) and column == "distance_km":
        return float(value)
    return value


def normalize_shipment_driver(raw: str) -> tuple[str, str]:
    """Return (driver_name, dialect) for a configured driver name."""
    name = raw.strip().lower()
    if name in ("", "mysql", "mariadb"):
        return "mysql", "mysql"
    if name in ("postgres", "postgresql", "pgx"):
        return "pgx", "postgres"
    raise ValueError(f'unsupported shipment db driver "{raw}"')


def quote_identifier(dialect: str, ident: str) -> str:
    """Validate and quote a single identifier for the dialect."""
    ident = ident.strip()
    if not _IDENTIFIER_RE.fullmatch(ident):
        raise ValueError(f'invalid identifier "{ident}"')
    if dialect == "postgres":
        return f'"{ident}"'
    return f"`{ident}`"


def quote_qualified_identifier(dialect: str, ident: str) -> str:
    """Validate and quote a dotted identifier such as schema.table."""
    return ".".join(quote_identifier(dialect, part) for part in ident.strip().split("."))