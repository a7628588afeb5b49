"""Lumenta: per-frame video event pipeline for surveillance dashboards."""

__version__ = "0.1.0"
