"""Compiled elements of a reference path pattern.

An element matches a single :class:`~refgraph_cli.models.Reference` (or, for
``**``, any run of them). Four kinds exist:

- :class:`AnyElement` (``*``): exactly one arbitrary reference.
- :class:`AnySequenceElement` (``**``): zero or more arbitrary references.
- :class:`SourceElement` (``/<node-path>[:<version>]``): source-level match on
  the referenced module's NodePath and Version.
- :class:`ArtifactElement` (``<group-id>[:<artifact-id>[:<artifact-version>]]``):
  artifact-level match.

Each part of a source or artifact element is either absent (matches anything),
a :class:`LiteralPart` compared for equality, or a :class:`RegexPart` written
``(regex)`` and matched against the whole string rendering of the value. A
regex part ends at the first ``):`` of its element or, failing that, at the
``)`` closing the element, so ``:`` may appear inside a regex. There is no
escape mechanism: ``:`` and ``->`` can never occur inside a literal part.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

from .errors import (
    NodePathParseError,
    PatternErrorKind,
    PatternParseError,
    VersionParseError,
)
from .models import ArtifactVersion, Reference, Version
from .node_path import NodePath


@dataclass(frozen=True)
class LiteralPart:
    value: Any

    def matches(self, value: Any) -> bool:
        return self.value == value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class RegexPart:
    # Equality and hashing use the regex source only.
    source: str
    compiled: re.Pattern = field(compare=False, hash=False, repr=False)

    def matches(self, value: Any) -> bool:
        return self.compiled.fullmatch(str(value)) is not None

    def __str__(self) -> str:
        return f"({self.source})"


Part = Union[LiteralPart, RegexPart]


def _part_matches(part: Optional[Part], value: Any) -> bool:
    if part is None:
        return True
    if value is None:
        return False
    return part.matches(value)


def _render_parts(parts: Tuple[Optional[Part], ...]) -> str:
    # Trailing absent parts are dropped; inner absent parts keep their separator.
    rendered = ["" if part is None else str(part) for part in parts]
    while len(rendered) > 1 and rendered[-1] == "":
        rendered.pop()
    return ":".join(rendered)


@dataclass(frozen=True)
class AnyElement:
    def matches(self, reference: Reference) -> bool:
        return True

    @property
    def pinned_module(self) -> Optional[NodePath]:
        return None

    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True)
class AnySequenceElement:
    def matches(self, reference: Reference) -> bool:
        raise TypeError('"**" elements match sequences, not single references.')

    @property
    def pinned_module(self) -> Optional[NodePath]:
        return None

    def __str__(self) -> str:
        return "**"


@dataclass(frozen=True)
class SourceElement:
    node_path: Optional[Part] = None
    version: Optional[Part] = None

    def matches(self, reference: Reference) -> bool:
        module_version = reference.module_version
        if module_version is None:
            return False
        if not _part_matches(self.node_path, module_version.node_path):
            return False
        return _part_matches(self.version, module_version.version)

    @property
    def pinned_module(self) -> Optional[NodePath]:
        if isinstance(self.node_path, LiteralPart):
            return self.node_path.value
        return None

    def __str__(self) -> str:
        return "/" + _render_parts((self.node_path, self.version))


@dataclass(frozen=True)
class ArtifactElement:
    group_id: Optional[Part] = None
    artifact_id: Optional[Part] = None
    artifact_version: Optional[Part] = None
    # Module producing the artifact, resolved at compile time when both the
    # group id and the artifact id are literal.
    module: Optional[NodePath] = None

    def matches(self, reference: Reference) -> bool:
        if self.group_id is not None or self.artifact_id is not None:
            artifact_group_id = reference.artifact_group_id
            if artifact_group_id is None:
                return False
            if not _part_matches(self.group_id, artifact_group_id.group_id):
                return False
            if not _part_matches(self.artifact_id, artifact_group_id.artifact_id):
                return False
        return _part_matches(self.artifact_version, reference.artifact_version)

    @property
    def names_specific_artifact(self) -> bool:
        return isinstance(self.group_id, LiteralPart) and isinstance(self.artifact_id, LiteralPart)

    @property
    def pinned_module(self) -> Optional[NodePath]:
        return self.module

    def __str__(self) -> str:
        rendered = _render_parts((self.group_id, self.artifact_id, self.artifact_version))
        # A lone group id of "*" or "**" would reparse as a wildcard element.
        if rendered in ("*", "**"):
            return rendered + ":"
        return rendered


ElementMatcher = Union[AnyElement, AnySequenceElement, SourceElement, ArtifactElement]

ANY = AnyElement()
ANY_SEQUENCE = AnySequenceElement()


def _error(
    kind: PatternErrorKind,
    pattern: str,
    start: int,
    end: int,
    position: int,
    detail: Optional[str] = None,
) -> PatternParseError:
    return PatternParseError(kind, pattern, pattern[start:end], position, detail)


def _parse_part(
    pattern: str, elem_start: int, start: int, end: int
) -> Tuple[Optional[Union[str, RegexPart]], int]:
    """Parse the part beginning at *start* within the element ``[elem_start, end)``.

    Returns the raw literal text or compiled RegexPart (None when the part is
    empty) and the index where the next part begins, which is *end* when no
    part remains.
    """
    if start >= end:
        return None, end

    if pattern[start] == "(":
        close = pattern.find("):", start, end)
        if close == -1:
            if end - 1 == start or pattern[end - 1] != ")":
                raise _error(
                    PatternErrorKind.UNTERMINATED_REGEX, pattern, elem_start, end, start
                )
            source = pattern[start + 1:end - 1]
            next_start = end
        else:
            source = pattern[start + 1:close]
            next_start = close + 2

        if not source:
            return None, next_start
        try:
            compiled = re.compile(source)
        except re.error as exc:
            offset = exc.pos if exc.pos is not None else 0
            raise _error(
                PatternErrorKind.INVALID_REGEX,
                pattern,
                elem_start,
                end,
                start + 1 + offset,
                exc.msg,
            ) from exc
        return RegexPart(source, compiled), next_start

    colon = pattern.find(":", start, end)
    if colon == -1:
        text, next_start = pattern[start:end], end
    else:
        text, next_start = pattern[start:colon], colon + 1
    return (text or None), next_start


def _literal_node_path(pattern: str, elem_start: int, end: int, start: int, text: str) -> LiteralPart:
    try:
        node_path = NodePath.parse(text)
    except NodePathParseError as exc:
        raise _error(
            PatternErrorKind.INVALID_LITERAL, pattern, elem_start, end, start + exc.position, str(exc)
        ) from exc
    if node_path.partial:
        raise _error(
            PatternErrorKind.INVALID_LITERAL,
            pattern,
            elem_start,
            end,
            start,
            f"module NodePath '{text}' must not be partial",
        )
    return LiteralPart(node_path)


def _literal_version(pattern: str, elem_start: int, end: int, start: int, text: str, parser) -> LiteralPart:
    try:
        return LiteralPart(parser(text))
    except VersionParseError as exc:
        raise _error(
            PatternErrorKind.INVALID_LITERAL, pattern, elem_start, end, start, str(exc)
        ) from exc


def parse_element(pattern: str, start: int, end: int) -> ElementMatcher:
    """Parse the element spanning ``pattern[start:end]``.

    Positions in raised PatternParseErrors refer to the whole *pattern*.
    """
    text = pattern[start:end]
    if not text:
        raise _error(PatternErrorKind.EMPTY_ELEMENT, pattern, start, end, start)
    if text == "*":
        return ANY
    if text == "**":
        return ANY_SEQUENCE

    if text[0] == "/":
        parts = []
        cursor = start + 1
        for _ in range(2):
            if cursor == end:
                parts.append((None, cursor))
                continue
            part_start = cursor
            raw, cursor = _parse_part(pattern, start, part_start, end)
            parts.append((raw, part_start))
        if cursor != end:
            raise _error(PatternErrorKind.TOO_MANY_PARTS, pattern, start, end, cursor)

        (raw_path, path_pos), (raw_version, version_pos) = parts
        node_path_part = raw_path
        if isinstance(raw_path, str):
            node_path_part = _literal_node_path(pattern, start, end, path_pos, raw_path)
        version_part = raw_version
        if isinstance(raw_version, str):
            version_part = _literal_version(pattern, start, end, version_pos, raw_version, Version.parse)

        if node_path_part is None and version_part is None:
            return ANY
        return SourceElement(node_path_part, version_part)

    parts = []
    cursor = start
    for _ in range(3):
        if cursor == end:
            parts.append((None, cursor))
            continue
        part_start = cursor
        raw, cursor = _parse_part(pattern, start, part_start, end)
        parts.append((raw, part_start))
    if cursor != end:
        raise _error(PatternErrorKind.TOO_MANY_PARTS, pattern, start, end, cursor)

    (raw_group, _), (raw_artifact, _), (raw_version, version_pos) = parts
    group_part = LiteralPart(raw_group) if isinstance(raw_group, str) else raw_group
    artifact_part = LiteralPart(raw_artifact) if isinstance(raw_artifact, str) else raw_artifact
    version_part = raw_version
    if isinstance(raw_version, str):
        version_part = _literal_version(pattern, start, end, version_pos, raw_version, ArtifactVersion.parse)

    if group_part is None and artifact_part is None and version_part is None:
        return ANY
    return ArtifactElement(group_part, artifact_part, version_part)
