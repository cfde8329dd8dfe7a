"""Rollcall: flexible attendance-sheet ingestion and reporting."""

__version__ = "0.1.0"
