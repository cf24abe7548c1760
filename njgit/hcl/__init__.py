"""Canonical job documents: serialization and text canonicalization."""

from .canonical import canonicalize, documents_equal, render_document
from .exceptions import InvalidJobError, SerializationError
from .serializer import escape_string, format_value, serialize

__all__ = [
    "serialize",
    "format_value",
    "escape_string",
    "canonicalize",
    "documents_equal",
    "render_document",
    "SerializationError",
    "InvalidJobError",
]
