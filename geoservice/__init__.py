"""Geospatial helpers: geometry, GPS smoothing, nearby search, and SQL for road and location tables."""

__version__ = "0.1.0"