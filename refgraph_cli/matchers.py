"""Boolean algebra over reference path matchers.

Every matcher answers three questions about a :class:`ReferencePath`:

``matches(path)``
    Exact verdict for the path itself.

``can_match_children(path)``
    Whether some descendant of ``path`` may match. ``True`` is always a safe
    answer; ``False`` is only returned when no descendant can ever match, so a
    traversal can skip the whole subtree without visiting it.

``matches_all_children(path)``
    Whether every descendant of ``path`` is known to match. ``False`` is always
    a safe answer; it only serves to sharpen :class:`NotMatcher`.

The main implementation is
:class:`~refgraph_cli.path_matcher.ElementPathMatcher`; the classes here
combine matchers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Mapping, Optional

from .models import ModuleVersion
from .reference_path import ReferencePath


class ReferencePathMatcher(ABC):
    """Abstract base class for all reference path matchers."""

    @abstractmethod
    def matches(self, path: ReferencePath) -> bool:
        ...

    @abstractmethod
    def can_match_children(self, path: ReferencePath) -> bool:
        ...

    def matches_all_children(self, path: ReferencePath) -> bool:
        return False


class AllMatcher(ReferencePathMatcher):
    """Matches every path. Used when the user does not restrict the selection."""

    def matches(self, path: ReferencePath) -> bool:
        return True

    def can_match_children(self, path: ReferencePath) -> bool:
        return True

    def matches_all_children(self, path: ReferencePath) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AllMatcher)

    def __hash__(self) -> int:
        return hash(AllMatcher)

    def __repr__(self) -> str:
        return "AllMatcher()"


class AndMatcher(ReferencePathMatcher):
    """Matches when every member matches. An empty AndMatcher matches everything."""

    def __init__(self, matchers: Optional[Iterable[ReferencePathMatcher]] = None) -> None:
        self.matchers: List[ReferencePathMatcher] = list(matchers or [])

    def add(self, matcher: ReferencePathMatcher) -> None:
        self.matchers.append(matcher)

    def matches(self, path: ReferencePath) -> bool:
        return all(m.matches(path) for m in self.matchers)

    def can_match_children(self, path: ReferencePath) -> bool:
        return all(m.can_match_children(path) for m in self.matchers)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AndMatcher) and self.matchers == other.matchers

    def __repr__(self) -> str:
        return f"AndMatcher({self.matchers!r})"


class OrMatcher(ReferencePathMatcher):
    """Matches when any member matches. An empty OrMatcher matches everything."""

    def __init__(self, matchers: Optional[Iterable[ReferencePathMatcher]] = None) -> None:
        self.matchers: List[ReferencePathMatcher] = list(matchers or [])

    def add(self, matcher: ReferencePathMatcher) -> None:
        self.matchers.append(matcher)

    def matches(self, path: ReferencePath) -> bool:
        if not self.matchers:
            return True
        return any(m.matches(path) for m in self.matchers)

    def can_match_children(self, path: ReferencePath) -> bool:
        if not self.matchers:
            return True
        return any(m.can_match_children(path) for m in self.matchers)

    def matches_all_children(self, path: ReferencePath) -> bool:
        if not self.matchers:
            return True
        return any(m.matches_all_children(path) for m in self.matchers)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OrMatcher) and self.matchers == other.matchers

    def __repr__(self) -> str:
        return f"OrMatcher({self.matchers!r})"


class NotMatcher(ReferencePathMatcher):
    """Matches a path when the inner matcher does not."""

    def __init__(self, matcher: ReferencePathMatcher) -> None:
        self.matcher = matcher

    def matches(self, path: ReferencePath) -> bool:
        return not self.matcher.matches(path)

    def can_match_children(self, path: ReferencePath) -> bool:
        # A child is excluded only if the inner matcher provably matches all of them.
        return not self.matcher.matches_all_children(path)

    def matches_all_children(self, path: ReferencePath) -> bool:
        return not self.matcher.can_match_children(path)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NotMatcher) and self.matcher == other.matcher

    def __repr__(self) -> str:
        return f"NotMatcher({self.matcher!r})"


AttributesLookup = Callable[[ModuleVersion], Mapping[str, str]]


class VersionAttributeMatcher(ReferencePathMatcher):
    """Matches paths whose leaf ModuleVersion carries a given version attribute.

    Attributes are obtained through *attributes_of*, typically backed by the
    source control system; nothing can be inferred about children.
    """

    def __init__(self, name: str, value: str, attributes_of: AttributesLookup) -> None:
        self.name = name
        self.value = value
        self.attributes_of = attributes_of

    def matches(self, path: ReferencePath) -> bool:
        if len(path) == 0:
            return False
        module_version = path.leaf_module_version
        if module_version is None:
            return False
        return self.attributes_of(module_version).get(self.name) == self.value

    def can_match_children(self, path: ReferencePath) -> bool:
        return True

    def __repr__(self) -> str:
        return f"VersionAttributeMatcher({self.name!r}, {self.value!r})"
