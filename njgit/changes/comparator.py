"""Change detection between a fresh canonical document and stored history.

Classification is strictly byte equality after canonicalization. The
human-readable description is best-effort and never influences the result.
"""

import difflib
from typing import List, Optional

from njgit.domain.models import ChangeKind, ChangeRecord
from njgit.hcl.canonical import canonicalize

INITIAL_VERSION = "Initial version"
UPDATED_SUMMARY = "Job configuration updated"

# Maximum number of changed lines listed in a description
MAX_DESCRIBED_LINES = 10


def compare(stored: Optional[bytes], fresh: bytes) -> ChangeRecord:
    """Classify a fresh document against the stored one.

    Args:
        stored: Previously stored document, or None when the job has no history
        fresh: Newly rendered document

    Returns:
        ChangeRecord with kind NEW, UNCHANGED or MODIFIED

    Example:
        >>> compare(None, b'job "web" {\\n}\\n').kind
        <ChangeKind.NEW: 'new'>
    """
    if stored is None:
        return ChangeRecord(kind=ChangeKind.NEW, description=INITIAL_VERSION)

    stored_canonical = canonicalize(stored)
    fresh_canonical = canonicalize(fresh)

    if stored_canonical == fresh_canonical:
        return ChangeRecord(kind=ChangeKind.UNCHANGED)

    return ChangeRecord(
        kind=ChangeKind.MODIFIED,
        description=describe_changes(stored_canonical, fresh_canonical),
    )


def describe_changes(old: bytes, new: bytes, max_lines: int = MAX_DESCRIBED_LINES) -> str:
    """Summarize the line-level differences between two documents.

    The summary always starts with a fixed headline, followed by up to
    ``max_lines`` changed lines in unified-diff notation (``-``/``+``).
    Undecodable input degrades to the headline alone.
    """
    try:
        old_lines = old.decode("utf-8").splitlines()
        new_lines = new.decode("utf-8").splitlines()
    except UnicodeDecodeError:
        return UPDATED_SUMMARY

    changed: List[str] = []
    for line in difflib.unified_diff(old_lines, new_lines, lineterm="", n=0):
        if line.startswith(("---", "+++", "@@")):
            continue
        changed.append(f"  {line[0]} {line[1:].strip()}")

    if not changed:
        return UPDATED_SUMMARY

    parts = [UPDATED_SUMMARY]
    parts.extend(changed[:max_lines])
    if len(changed) > max_lines:
        parts.append(f"  ... and {len(changed) - max_lines} more changed lines")
    return "\n".join(parts)
