"""Core type definitions."""

from dataclasses import dataclass
from typing import NewType

# URL path as presented to the end user (e.g., "/guide", "/guide/intro/")
URLPath = NewType("URLPath", str)

# Backend content service identifier (e.g., "https://github.com/org/repo/page")
ContentID = NewType("ContentID", str)


@dataclass(frozen=True)
class Unmapped:
    """No routing prefix matched the presented path."""

    def __str__(self) -> str:
        return "[unmapped]"


@dataclass(frozen=True)
class EmptyEnvelope:
    """A null-base prefix matched at its exact root."""

    def __str__(self) -> str:
        return "[empty]"


@dataclass(frozen=True)
class MappedContent:
    """A presented path resolved to a content ID."""

    content_id: ContentID

    def __str__(self) -> str:
        return self.content_id


# Result of forward resolution. Callers branch on all three variants.
Resolution = Unmapped | EmptyEnvelope | MappedContent

UNMAPPED = Unmapped()
EMPTY_ENVELOPE = EmptyEnvelope()
