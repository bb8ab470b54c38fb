"""Exception types raised by the reference graph core."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class RefGraphError(Exception):
    """Base class for all errors raised by refgraph."""


class NodePathParseError(RefGraphError, ValueError):
    """Raised when a NodePath literal is malformed."""

    def __init__(self, literal: str, position: int, reason: str) -> None:
        self.literal = literal
        self.position = position
        self.reason = reason
        super().__init__(
            f"Invalid NodePath literal '{literal}' at position {position}: {reason}"
        )


class VersionParseError(RefGraphError, ValueError):
    """Raised when a Version, ArtifactVersion or artifact coordinate literal is malformed."""

    def __init__(self, kind: str, literal: str, position: int = 0) -> None:
        self.kind = kind
        self.literal = literal
        self.position = position
        super().__init__(f"Invalid {kind} literal '{literal}'")


class PatternErrorKind(str, Enum):
    EMPTY_ELEMENT = "empty-element"
    TOO_MANY_PARTS = "too-many-parts"
    UNTERMINATED_REGEX = "unterminated-regex"
    INVALID_REGEX = "invalid-regex"
    INVALID_LITERAL = "invalid-literal"
    UNRESOLVABLE_ARTIFACT_MODULE = "unresolvable-artifact-module"


_KIND_MESSAGES = {
    PatternErrorKind.EMPTY_ELEMENT: "empty element",
    PatternErrorKind.TOO_MANY_PARTS: "element has too many parts",
    PatternErrorKind.UNTERMINATED_REGEX: "regex part is not terminated by ')'",
    PatternErrorKind.INVALID_REGEX: "invalid regex",
    PatternErrorKind.INVALID_LITERAL: "invalid literal part",
    PatternErrorKind.UNRESOLVABLE_ARTIFACT_MODULE: "no module produces the artifact",
}


class PatternParseError(RefGraphError, ValueError):
    """Raised when a reference path pattern cannot be compiled.

    Carries the error ``kind``, the full ``pattern``, the offending ``element``
    substring and the character ``position`` within the pattern where the
    problem was detected.
    """

    def __init__(
        self,
        kind: PatternErrorKind,
        pattern: str,
        element: str,
        position: int,
        detail: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.pattern = pattern
        self.element = element
        self.position = position
        self.detail = detail
        message = (
            f"{_KIND_MESSAGES[kind]} in pattern '{pattern}' "
            f"(element '{element}', position {position})"
        )
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CycleDetectedError(RefGraphError):
    """Raised when appending a Reference would revisit a module already in a path."""

    def __init__(self, path: Any, reference: Any) -> None:
        self.path = path
        self.reference = reference
        super().__init__(f"Cycle detected in reference path {path} when adding reference {reference}.")


class GraphFileError(RefGraphError):
    """Raised when a graph description file is malformed."""
