"""Valoris: procurement spend ingestion and optimization analysis."""

__version__ = "0.1.0"
