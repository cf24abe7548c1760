"""Format-level canonicalization of job documents.

Documents produced in different environments (CRLF checkouts, editors adding
trailing blanks) must compare equal when they are semantically identical. The
functions here only touch whitespace and line endings, never content.
"""

from typing import Optional, Union

from njgit.domain.models import JobSpecification

from .serializer import serialize

Document = Union[bytes, str]


def canonicalize(document: Document) -> bytes:
    """Canonicalize a job document.

    - ``\\r\\n`` and lone ``\\r`` become ``\\n``
    - trailing spaces and tabs are stripped from every line
    - the document ends with exactly one newline

    The function is pure, total and idempotent.

    Example:
        >>> canonicalize(b'job "web" {  \\r\\n}\\r\\n\\r\\n')
        b'job "web" {\\n}\\n'
    """
    if isinstance(document, str):
        document = document.encode("utf-8")

    unified = document.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    lines = [line.rstrip(b" \t") for line in unified.split(b"\n")]
    return b"\n".join(lines).rstrip(b"\n") + b"\n"


def documents_equal(left: Optional[Document], right: Optional[Document]) -> bool:
    """Compare two documents after canonicalization.

    Two absent documents are equal; an absent and a present one are not.
    """
    if left is None or right is None:
        return left is None and right is None
    return canonicalize(left) == canonicalize(right)


def render_document(job: JobSpecification) -> bytes:
    """Render a normalized job into its canonical document bytes."""
    return canonicalize(serialize(job))
