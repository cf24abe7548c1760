"""Custom exceptions for job document rendering."""


class SerializationError(Exception):
    """Base exception for document rendering errors."""

    pass


class InvalidJobError(SerializationError):
    """Job cannot be rendered because it has no identity.

    The serializer degrades gracefully on every other malformed attribute; a
    missing or empty job name is the only unrecoverable case.
    """

    pass
