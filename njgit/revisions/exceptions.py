"""Exceptions for browsing and restoring earlier job revisions."""


class RevisionError(Exception):
    """A commit, document or job could not be resolved from history.

    The message is meant for the operator and usually says how to
    disambiguate (for example by passing the job name explicitly).
    """

    pass
