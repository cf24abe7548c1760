"""Utility functions for hashing and time handling."""

from .hashing import compute_document_hash
from .timestamps import ensure_utc, format_commit_date, parse_iso_datetime, utc_now

__all__ = [
    # Hashing
    "compute_document_hash",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "format_commit_date",
]
