"""Hashing utilities for canonical job documents."""

import hashlib


def compute_document_hash(document: bytes) -> str:
    """Compute a SHA256 fingerprint of a canonical job document.

    Documents are expected to be canonicalized already, so two documents with
    the same hash are byte-identical for comparison purposes.

    Args:
        document: Canonical document bytes

    Returns:
        Hexadecimal string representation of SHA256 hash (64 characters)
    """
    hash_obj = hashlib.sha256(document)
    return hash_obj.hexdigest()
