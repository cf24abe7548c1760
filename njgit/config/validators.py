"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration

# Below this interval Nomad and GitHub API rate limits become a concern
SHORT_INTERVAL_SECONDS = 300

IDENTITY_FIELDS = {"ID", "Name", "id", "name"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    sync_interval = config_dict.get("sync_interval", "15m")
    if isinstance(sync_interval, str):
        try:
            if parse_duration(sync_interval) < SHORT_INTERVAL_SECONDS:
                warning_messages.append(
                    f"Short sync_interval ({sync_interval}) may trigger API rate limits"
                )
        except DurationParseError:
            # Reported as a validation error by the schema
            pass

    changes = config_dict.get("changes") or {}
    if isinstance(changes, dict):
        ignore_fields = changes.get("ignore_fields") or []
        if isinstance(ignore_fields, list):
            identity = sorted({f for f in ignore_fields if isinstance(f, str)} & IDENTITY_FIELDS)
            if identity:
                warning_messages.append(
                    f"ignore_fields cannot remove the job identity and will keep: {', '.join(identity)}"
                )

    git = config_dict.get("git") or {}
    if isinstance(git, dict) and git.get("token"):
        warning_messages.append(
            "git.token is set in the configuration file; prefer the GITHUB_TOKEN environment variable"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
