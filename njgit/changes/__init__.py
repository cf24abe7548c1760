"""Change detection for canonical job documents."""

from .comparator import INITIAL_VERSION, UPDATED_SUMMARY, compare, describe_changes

__all__ = [
    "compare",
    "describe_changes",
    "INITIAL_VERSION",
    "UPDATED_SUMMARY",
]
