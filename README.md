# geoservice

Building blocks for a geospatial service: geometry on the sphere, GPS
smoothing, nearby shipment and driver search, and SQL text for road-segment
tables and monthly location partitions. The package uses only the standard
library.

## Modules

- `geoservice.geo`
  - `haversine(lat1, lng1, lat2, lng2)`: great-circle distance in km.
  - `bearing_rad(...)`: initial bearing in radians.
  - `cross_track_distance(p_lat, p_lng, a_lat, a_lng, b_lat, b_lng)`: returns
    `(distance_km, within)`. The distance is from P to the segment A→B.
    `within` says whether the foot of the perpendicular lies on the segment.
  - `min_distance_to_polyline(lat, lng, pts)`: smallest distance in km from a
    point to a list of `PolyPoint`s. An empty list gives `sys.float_info.max`.
  - `valid_coords(lat, lng)`: bounds check for a coordinate pair.
  - `round_to(value, precision)`: rounds to a number of decimal places, with
    halves rounded away from zero.
  - `smooth_gps(raw_lat, raw_lng, prev_lat, prev_lng, alpha)`: exponential
    moving average of two fixes. A previous fix of `(0, 0)` counts as no
    history, and the raw fix is returned unchanged.
- `geoservice.routing_options`
  - `normalize_alternatives(n, max_allowed=None)`: a value of `n` that is not
    positive gives 1. Any other value is capped at `max_allowed` and never
    goes above 3.
  - `route_mode(vehicle_type, mode)`: the vehicle type wins when it is set.
  - `RouteMeta`: records how a route request was served (backend, cache hit,
    mode, alternatives).
- `geoservice.shipment_db`: read-only nearby search over a MySQL or PostgreSQL
  table of shipments.
  - `ShipmentDBConfig` holds the driver, DSN, table and coordinate columns.
  - `open_shipment_db(config, connection)` works as follows:
    - It returns `None` when the DSN is blank.
    - Otherwise it validates and quotes the identifiers.
    - It then pings the DB-API connection you pass in with `SELECT 1`.
    - It returns a `ShipmentDB`.
  - `ShipmentDB.build_nearby_query` returns parameterised SQL with
    `$n` placeholders for PostgreSQL and `?` for MySQL. The query filters by
    bounding box and haversine distance and orders nearest first.
  - `ShipmentDB.find_nearby_shipments` runs that query and returns rows as
    dicts.
  - Helpers: `shipment_bounding_box`, `coordinate_expression`,
    `normalize_sql_value`, `normalize_shipment_driver`, `quote_identifier`,
    `quote_qualified_identifier`.
- `geoservice.shipment_service`
  - `ShipmentService.search_nearby(NearbyShipmentRequest)` fills in the
    default radius (10 km) and limit (100), and caps the limit at 500.
  - The repository is any object with `find_nearby_shipments`.
  - The result is a `NearbyShipmentResponse`.
  - It raises `ShipmentSearchDisabled` when no repository is set.
- `geoservice.drivers`
  - `DriverService.update_location` stores a driver position through a store
    object. The store provides `set_driver_location` and
    `find_nearby_drivers`.
  - `DriverService.search_nearby` searches through the same store. It uses a
    default radius of 20 km and a default limit of 100, capped at 500.
  - It raises `DriverLocationDisabled` when there is no store or geo key.
  - It raises `DriverIdRequired` when a driver id is blank.
- `geoservice.road_tables`
  - `road_segments_table_name(region)` maps a region slug such as `tehran` to
    `road_segments_tehran`.
  - `road_graph_tables(regions)` lists the tables to read. It falls back to
    `road_segments`.
  - `road_segments_table_statements(table)` returns the `CREATE TABLE` and
    `CREATE INDEX` statements for a region table.
  - `quote_ident(name)` quotes an identifier.
- `geoservice.partitions`
  - `partition_statements(now)` returns `CREATE TABLE ... PARTITION OF
    trip_locations` statements, ranged in unix seconds. They cover the month
    before `now` through three months after it, followed by the default
    partition.
  - Also available: `partition_table_name`, `partition_month_starts` and
    `partition_statement`.
- `geoservice.transit_labels`: `bus_line_label(ref, name)` and
  `metro_line_label(ref, name)`, for example `"Bus 12 — Azadi"`.

## Example

```python
from geoservice.geo import haversine, min_distance_to_polyline, PolyPoint

distance_km = haversine(35.6892, 51.3890, 32.6539, 51.6660)
off_route_km = min_distance_to_polyline(
    35.70, 51.40,
    [PolyPoint(35.69, 51.39), PolyPoint(35.72, 51.42)],
)
```

```python
from geoservice.shipment_db import ShipmentDB, quote_identifier, quote_qualified_identifier

db = ShipmentDB(
    dialect="postgres",
    table=quote_qualified_identifier("postgres", "public.shipments"),
    lat_column=quote_identifier("postgres", "pickup_lat"),
    lng_column=quote_identifier("postgres", "pickup_lng"),
)
query, args = db.build_nearby_query(35.7, 51.4, 10, 25)
```

## What the package does not do

- It does not compute routes. There is no routing engine, no route backend,
  and no route cache.
- It has no HTTP or WebSocket server and no command-line program.
- It opens no database or Redis connections of its own:
  - Shipment search runs on a DB-API connection that you supply.
  - Driver positions go through a store object that you supply.
- The road-table and partition helpers return SQL text. Running that SQL is
  up to the caller.

## Tests

```
pip install -e ".[test]"
pytest
```