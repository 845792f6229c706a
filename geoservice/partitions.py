"""Monthly range partitions of the trip_locations table."""

from __future__ import annotations

from datetime import datetime, timezone

from geoservice.road_tables import quote_ident

PARENT_TABLE = "trip_locations"
DEFAULT_PARTITION_STATEMENT = (
    "CREATE TABLE IF NOT EXISTS trip_locations_default "
    "PARTITION OF trip_locations DEFAULT"
)
MONTHS_BEFORE = 1
MONTHS_AFTER = 3


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _month_start(moment: datetime) -> datetime:
    moment = _as_utc(moment)
    return datetime(moment.year, moment.month, 1, tzinfo=timezone.utc)


def _add_months(start: datetime, months: int) -> datetime:
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    return datetime(year, month + 1, 1, tzinfo=timezone.utc)


def _unix(moment: datetime) -> int:
    return int(_as_utc(moment).timestamp())


def partition_table_name(start: datetime) -> str:
    """Return the partition table name for the month containing start."""
    start = _as_utc(start)
    return f"{PARENT_TABLE}_{start.year:04d}_{start.month:02d}"


def partition_month_starts(now: datetime) -> list[datetime]:
    """Return the UTC month starts from one month before now to three after."""
    base = _month_start(now)
    return [_add_months(base, offset) for offset in range(-MONTHS_BEFORE, MONTHS_AFTER + 1)]


def partition_statement(start: datetime) -> str:
    """Return the statement creating the partition for the month of start.

    The partition covers unix seconds from the month's start up to the next month's.
    """
    month = _month_start(start)
    end = _add_months(month, 1)
    return (
        f"CREATE TABLE IF NOT EXISTS {quote_ident(partition_table_name(month))} "
        f"PARTITION OF {PARENT_TABLE} FOR VALUES FROM ({_unix(month)}) TO ({_unix(end)})"
    )


def partition_statements(now: datetime) -> list[str]:
    """Return every statement keeping partitions around now, default partition last."""
    statements = [partition_statement(start) for start in partition_month_starts(now)]
    statements.append(DEFAULT_PARTITION_STATEMENT)
    return statements