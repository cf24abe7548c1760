"""Normalization layer that makes Nomad job specifications comparable.

This module provides:
- JobNormalizer: strips volatile and ignored fields, sorts unordered collections
- normalize_job: one-off convenience wrapper
- VOLATILE_FIELDS: the built-in set of bookkeeping fields always removed
"""

from .service import (
    VOLATILE_FIELDS,
    JobNormalizer,
    normalize_config_value,
    normalize_job,
    normalize_string_map,
)

__all__ = [
    "JobNormalizer",
    "normalize_job",
    "normalize_string_map",
    "normalize_config_value",
    "VOLATILE_FIELDS",
]
