"""Batch translation job supervisor."""

__version__ = "0.1.0"
