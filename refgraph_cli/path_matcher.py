"""Reference path matcher compiled from the element pattern language.

A pattern is a ``->``-separated list of elements (see
:mod:`refgraph_cli.element_matcher`)::

    /Domain1/app-a                      exactly one reference, to Domain1/app-a
    **->/Domain1/app-a:(D/.*)           ends with app-a at a dynamic version
    *->/Domain1/app-a->**               app-a is the second reference
    com.acme:lib-b->**                  starts with the module producing lib-b

Besides the exact verdict, :meth:`ElementPathMatcher.can_match_children`
proves, when it can, that no descendant of a path can match. It relies on
reference paths being acyclic: once a module pinned by the pattern occurs in
a path, it cannot occur again deeper down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .element_matcher import (
    ANY_SEQUENCE,
    AnySequenceElement,
    ArtifactElement,
    ElementMatcher,
    parse_element,
)
from .errors import PatternErrorKind, PatternParseError
from .matchers import ReferencePathMatcher
from .model import ArtifactResolver
from .node_path import NodePath
from .reference_path import ReferencePath

logger = logging.getLogger(__name__)

ELEMENT_SEPARATOR = "->"


@dataclass(frozen=True)
class ModuleMatcher:
    """An element pinning a specific module, with the preceding-count window.

    ``min_preceding`` and ``max_preceding`` count the elements between the
    previous pinned element (or the start of the pattern) and this one.
    ``max_preceding`` is None when a ``**`` occurs in between.
    """

    node_path: NodePath
    min_preceding: int
    max_preceding: Optional[int]
    element_index: int


@dataclass(frozen=True)
class ElementMatcherGroup:
    """Run of fixed elements strictly between two ``**`` elements.

    ``remaining_size`` is the size of this group plus that of all the groups
    after it.
    """

    first_index: int
    size: int
    remaining_size: int


def _is_any_sequence(element: ElementMatcher) -> bool:
    return isinstance(element, AnySequenceElement)


def split_elements(literal: str) -> List[Tuple[int, int]]:
    """Start and end offsets of each element of a pattern literal."""
    spans = []
    start = 0
    while True:
        end = literal.find(ELEMENT_SEPARATOR, start)
        if end == -1:
            spans.append((start, len(literal)))
            return spans
        spans.append((start, end))
        start = end + len(ELEMENT_SEPARATOR)


class ElementPathMatcher(ReferencePathMatcher):
    """Matcher over a compiled list of elements.

    Instances are immutable once built and can be shared freely.
    """

    def __init__(self, elements: Sequence[ElementMatcher]) -> None:
        self._elements: Tuple[ElementMatcher, ...] = tuple(elements)

        any_sequence_indexes = [
            index for index, element in enumerate(self._elements) if _is_any_sequence(element)
        ]
        self._fixed_length = len(self._elements) - len(any_sequence_indexes)
        if any_sequence_indexes:
            self._first_any_sequence: Optional[int] = any_sequence_indexes[0]
            self._last_any_sequence: Optional[int] = any_sequence_indexes[-1]
        else:
            self._first_any_sequence = None
            self._last_any_sequence = None

        self._groups = self._build_groups(any_sequence_indexes)
        self._module_matchers = self._build_module_matchers()

    @classmethod
    def parse(
        cls, literal: str, resolver: Optional[ArtifactResolver] = None
    ) -> "ElementPathMatcher":
        """Compile a pattern literal.

        *resolver* maps literal artifact coordinates to the module producing
        them. Artifact elements naming a specific artifact require it.

        Raises PatternParseError.
        """
        elements: List[ElementMatcher] = []
        for start, end in split_elements(literal):
            element = parse_element(literal, start, end)
            if isinstance(element, ArtifactElement) and element.names_specific_artifact:
                element = replace(element, module=cls._resolve(literal, start, end, element, resolver))
            elements.append(element)

        matcher = cls(elements)
        logger.debug("Compiled pattern '%s' into %d elements: %s", literal, len(elements), matcher)
        return matcher

    @staticmethod
    def _resolve(
        literal: str,
        start: int,
        end: int,
        element: ArtifactElement,
        resolver: Optional[ArtifactResolver],
    ) -> NodePath:
        group_id = element.group_id.value
        artifact_id = element.artifact_id.value
        node_path = None
        if resolver is not None:
            node_path = resolver.resolve_artifact(group_id, artifact_id)
        if node_path is None:
            raise PatternParseError(
                PatternErrorKind.UNRESOLVABLE_ARTIFACT_MODULE,
                literal,
                literal[start:end],
                start,
                f"artifact {group_id}:{artifact_id} is not produced by any known module",
            )
        return node_path

    def _build_groups(self, any_sequence_indexes: List[int]) -> Tuple[ElementMatcherGroup, ...]:
        sizes = []
        for previous, following in zip(any_sequence_indexes, any_sequence_indexes[1:]):
            sizes.append((previous + 1, following - previous - 1))

        groups = []
        remaining = sum(size for _, size in sizes)
        for first_index, size in sizes:
            groups.append(ElementMatcherGroup(first_index, size, remaining))
            remaining -= size
        return tuple(groups)

    def _build_module_matchers(self) -> Tuple[ModuleMatcher, ...]:
        module_matchers = []
        preceding = 0
        bounded = True
        for index, element in enumerate(self._elements):
            if _is_any_sequence(element):
                bounded = False
                continue
            node_path = element.pinned_module
            if node_path is None:
                preceding += 1
                continue
            module_matchers.append(
                ModuleMatcher(node_path, preceding, preceding if bounded else None, index)
            )
            preceding = 0
            bounded = True
        return tuple(module_matchers)

    @property
    def elements(self) -> Tuple[ElementMatcher, ...]:
        return self._elements

    @property
    def module_matchers(self) -> Tuple[ModuleMatcher, ...]:
        return self._module_matchers

    @property
    def groups(self) -> Tuple[ElementMatcherGroup, ...]:
        return self._groups

    @property
    def is_fixed_length(self) -> bool:
        return self._first_any_sequence is None

    @property
    def fixed_length(self) -> int:
        """Number of elements other than ``**``, the minimum matching path length."""
        return self._fixed_length

    def _matches_run(self, path: ReferencePath, first_index: int, size: int, offset: int) -> bool:
        for index in range(size):
            if not self._elements[first_index + index].matches(path[offset + index]):
                return False
        return True

    def matches(self, path: ReferencePath) -> bool:
        path_size = len(path)

        if self.is_fixed_length and len(self._elements) != path_size:
            return False
        if self._fixed_length > path_size:
            return False

        if self._first_any_sequence is None:
            return self._matches_run(path, 0, len(self._elements), 0)

        leading_size = self._first_any_sequence
        if not self._matches_run(path, 0, leading_size, 0):
            return False

        trailing_size = len(self._elements) - self._last_any_sequence - 1
        interior_end = path_size - trailing_size
        if not self._matches_run(path, self._last_any_sequence + 1, trailing_size, interior_end):
            return False

        offset = leading_size
        for group in self._groups:
            offset = self._place_group(path, group, offset, interior_end)
            if offset is None:
                return False
        return True

    def _place_group(
        self, path: ReferencePath, group: ElementMatcherGroup, offset: int, interior_end: int
    ) -> Optional[int]:
        """Place *group* at the leftmost fitting offset and return the offset after it."""
        while offset + group.remaining_size <= interior_end:
            if self._matches_run(path, group.first_index, group.size, offset):
                return offset + group.size
            offset += 1
        return None

    def can_match_children(self, path: ReferencePath) -> bool:
        if any(reference.node_path is None for reference in path):
            # Module identities are unknown, nothing can be proven.
            return True

        remaining = path.copy()
        trailing_index = 0
        matcher_index = 0
        while matcher_index < len(self._module_matchers):
            module_matcher = self._module_matchers[matcher_index]
            offset = remaining.index_of_module(module_matcher.node_path)
            if offset == -1:
                if module_matcher.max_preceding is not None and len(remaining) > module_matcher.max_preceding:
                    return False
                break
            if offset < module_matcher.min_preceding:
                return False
            if module_matcher.max_preceding is not None and offset > module_matcher.max_preceding:
                return False
            remaining.remove_root_references(offset + 1)
            trailing_index = module_matcher.element_index + 1
            matcher_index += 1

        # Pinned modules not found after the previous ones must still be absent
        # from the whole path, otherwise a descendant would revisit them.
        for module_matcher in self._module_matchers[matcher_index:]:
            if path.contains_module(module_matcher.node_path):
                return False

        following: Optional[int] = 0
        for element in self._elements[trailing_index:]:
            if _is_any_sequence(element):
                following = None
                break
            following += 1
        if following is not None and following <= len(remaining):
            return False

        prefix = ElementPathMatcher(self._elements[:trailing_index] + (ANY_SEQUENCE,))
        return prefix.matches(path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ElementPathMatcher):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(self._elements)

    def __repr__(self) -> str:
        return f"ElementPathMatcher('{self}')"

    def __str__(self) -> str:
        return ELEMENT_SEPARATOR.join(str(element) for element in self._elements)
