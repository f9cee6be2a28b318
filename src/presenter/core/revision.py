"""Revision codec for staging mode.

Staging serves alternate content trees. A revision is carried as a leading
``@<revision>/`` segment of the content ID, and as leading ``/<revision>/<domain>``
segments of the presented path.

Content IDs without a revision segment pass through unchanged, as does
applying a missing revision.
"""

from dataclasses import dataclass

REVISION_MARKER = "@"


@dataclass(frozen=True)
class RevisionedContentID:
    """Content ID split from its revision."""

    revision_id: str | None
    content_id: str


def _check_revision(revision_id: str) -> None:
    if "/" in revision_id:
        raise ValueError(f"Revision ID must not contain '/': {revision_id!r}")


def apply_to_content_id(revision_id: str | None, content_id: str) -> str:
    """Insert a revision segment at the front of a content ID.

    Args:
        revision_id: Revision to embed, None or empty for no-op
        content_id: Content ID without a revision segment

    Returns:
        Content ID carrying the revision
    """
    if not revision_id:
        return content_id
    _check_revision(revision_id)
    return f"{REVISION_MARKER}{revision_id}/{content_id}"


def from_content_id(content_id: str) -> RevisionedContentID:
    """Extract and strip the revision segment of a content ID.

    Args:
        content_id: Content ID, with or without a revision segment

    Returns:
        RevisionedContentID; revision_id is None when no segment was present
    """
    if not content_id.startswith(REVISION_MARKER):
        return RevisionedContentID(revision_id=None, content_id=content_id)

    segment, sep, rest = content_id[len(REVISION_MARKER) :].partition("/")
    if not sep or not segment:
        return RevisionedContentID(revision_id=None, content_id=content_id)
    return RevisionedContentID(revision_id=segment, content_id=rest)


def apply_to_path(revision_id: str | None, domain: str, path: str) -> str:
    """Prefix a presented path with its revision and domain segments.

    ``apply_to_path("build-7", "example.com", "/guide")`` is
    ``"/build-7/example.com/guide"``.
    """
    if not revision_id:
        return path
    _check_revision(revision_id)
    suffix = path.lstrip("/")
    prefixed = f"/{revision_id}/{domain}"
    return f"{prefixed}/{suffix}" if suffix else prefixed
