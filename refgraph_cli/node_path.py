"""Hierarchical module identifiers.

A NodePath is a sequence of node names. Every node but the last is a
classification node; the last one is a module unless the path is *partial*
(it then ends at a classification level). The literal form separates names
with ``/`` and marks partial paths with a trailing ``/``::

    Domain1/app-a        complete, refers to module app-a
    Domain1/Sub/         partial
    ""                   the root (empty and partial)

Node names use ``A-Z a-z 0-9 - _`` and must not start with ``-``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Tuple

from .errors import NodePathParseError

_NODE_NAME_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9\-_]*")
_NAME_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def is_valid_node_name(name: str) -> bool:
    return _NODE_NAME_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class NodePath:
    segments: Tuple[str, ...]
    partial: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.segments, tuple):
            object.__setattr__(self, "segments", tuple(self.segments))
        if not self.segments and not self.partial:
            raise ValueError("A complete NodePath cannot be empty.")
        for name in self.segments:
            if not is_valid_node_name(name):
                raise ValueError(f"Node name '{name}' is invalid.")

    @classmethod
    def parse(cls, literal: str) -> "NodePath":
        """Parse a NodePath literal, reporting the first offending position."""
        if literal == "":
            return ROOT

        segments = []
        start = 0
        for index, char in enumerate(literal):
            if char == "/":
                if index == start:
                    raise NodePathParseError(literal, index, "empty node name")
                segments.append(literal[start:index])
                start = index + 1
            elif char not in _NAME_CHARS:
                raise NodePathParseError(literal, index, f"invalid character '{char}'")
            elif char == "-" and index == start:
                raise NodePathParseError(literal, index, "node name cannot start with '-'")

        if start == len(literal):
            return cls(tuple(segments), partial=True)

        segments.append(literal[start:])
        return cls(tuple(segments), partial=False)

    @classmethod
    def of(cls, names: Iterable[str], partial: bool = False) -> "NodePath":
        return cls(tuple(names), partial)

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def node_count(self) -> int:
        return len(self.segments)

    def node_name(self, index: int) -> str:
        if index >= len(self.segments):
            raise IndexError(
                f"Index {index} is beyond the last node of NodePath '{self}'."
            )
        return self.segments[index]

    @property
    def parent(self) -> "NodePath":
        """Partial parent of this path. The parent of a one-node path is the root."""
        if self.is_root:
            raise ValueError("The root NodePath has no parent.")
        return NodePath(self.segments[:-1], partial=True)

    @property
    def partial_path(self) -> "NodePath":
        """This path if partial, else its partial parent."""
        return self if self.partial else self.parent

    @property
    def module_name(self) -> str:
        if self.partial:
            raise ValueError(f"NodePath '{self}' is partial and has no module.")
        return self.segments[-1]

    def child(self, name: str, partial: bool = False) -> "NodePath":
        if not self.partial:
            raise ValueError(f"A node cannot be appended to the complete NodePath '{self}'.")
        return NodePath(self.segments + (name,), partial)

    @property
    def property_name_segment(self) -> str:
        """Dot-separated rendering suitable as part of a property name."""
        return ".".join(self.segments)

    def __str__(self) -> str:
        text = "/".join(self.segments)
        if self.partial and self.segments:
            text += "/"
        return text


ROOT = NodePath((), partial=True)

