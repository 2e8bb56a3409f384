"""Shorecast: coastal-erosion dataset ingestion and query tooling."""

__version__ = "0.1.0"
