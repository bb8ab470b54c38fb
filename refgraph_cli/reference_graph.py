"""In-memory reference graph and the pruning walker selecting paths in a graph.

:class:`ReferenceGraph` records ModuleVersions and the References between them.
:class:`GraphWalker` walks any graph exposed through a ``children`` callable,
which is typically expensive (each call may query source control), and uses a
matcher's :meth:`can_match_children` to avoid expanding subtrees where nothing
can match.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set

from .errors import CycleDetectedError
from .matchers import ReferencePathMatcher
from .models import ModuleVersion, Reference
from .node_path import NodePath
from .reference_path import ReferencePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Referrer:
    """A ModuleVersion referring to another one through ``reference``."""

    module_version: ModuleVersion
    reference: Reference


class VisitControl(str, Enum):
    CONTINUE = "continue"
    SKIP_CHILDREN = "skip-children"
    ABORT = "abort"


Visitor = Callable[[ReferencePath, bool], VisitControl]
ChildrenLookup = Callable[[ModuleVersion], Iterable[Reference]]


class ReferenceGraph:
    """Directed acyclic graph of ModuleVersions linked by References.

    Only References identifying a ModuleVersion can be added, since the
    referred node must be known. A module can only appear once along any path,
    whatever its version.
    """

    def __init__(self) -> None:
        self._roots: List[ModuleVersion] = []
        self._references: Dict[ModuleVersion, List[Reference]] = {}
        self._referrers: Dict[ModuleVersion, List[Referrer]] = {}
        self._matched: List[ModuleVersion] = []

    def _ensure(self, module_version: ModuleVersion) -> None:
        if module_version not in self._references:
            self._references[module_version] = []
            self._referrers[module_version] = []

    def add_root(self, module_version: ModuleVersion) -> None:
        self._ensure(module_version)
        if module_version not in self._roots:
            self._roots.append(module_version)

    @property
    def roots(self) -> List[ModuleVersion]:
        return list(self._roots)

    def is_root(self, module_version: ModuleVersion) -> bool:
        return module_version in self._roots

    def module_version_exists(self, module_version: ModuleVersion) -> bool:
        return module_version in self._references

    def module_versions(self, node_path: Optional[NodePath] = None) -> List[ModuleVersion]:
        """ModuleVersions of the module *node_path*, or all of them when None."""
        return [
            module_version
            for module_version in self._references
            if node_path is None or module_version.node_path == node_path
        ]

    def references_of(self, module_version: ModuleVersion) -> List[Reference]:
        return list(self._references.get(module_version, []))

    def referrers_of(self, module_version: ModuleVersion) -> List[Referrer]:
        return list(self._referrers.get(module_version, []))

    def add_reference(self, referrer: ModuleVersion, reference: Reference) -> None:
        """Add *reference* from *referrer*, which must already be in the graph.

        The referred ModuleVersion is created if needed. Adding an existing
        Reference does nothing.

        Raises CycleDetectedError if the referred ModuleVersion leads to a
        module already found on a path from a root to the referrer.
        """
        if referrer not in self._references:
            raise ValueError(f"Referrer {referrer} is not part of the graph.")
        referred = reference.module_version
        if referred is None:
            raise ValueError(f"Reference {reference} does not identify a ModuleVersion.")
        if reference in self._references[referrer]:
            return

        if self._reaches_module(referred, self._ancestor_modules(referrer)):
            raise CycleDetectedError(ReferencePath([Reference.to_module(referrer)]), reference)

        self._ensure(referred)
        self._references[referrer].append(reference)
        self._referrers[referred].append(Referrer(referrer, reference))

    def _ancestor_modules(self, module_version: ModuleVersion) -> Set[NodePath]:
        """NodePaths of *module_version* and of everything referring to it."""
        modules = set()
        pending = [module_version]
        seen = set()
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            modules.add(current.node_path)
            pending.extend(referrer.module_version for referrer in self._referrers.get(current, []))
        return modules

    def _reaches_module(self, start: ModuleVersion, node_paths: Set[NodePath]) -> bool:
        pending = [start]
        seen = set()
        while pending:
            module_version = pending.pop()
            if module_version.node_path in node_paths:
                return True
            if module_version in seen:
                continue
            seen.add(module_version)
            pending.extend(reference.module_version for reference in self._references.get(module_version, []))
        return False

    @property
    def matched(self) -> List[ModuleVersion]:
        return list(self._matched)

    def is_matched(self, module_version: ModuleVersion) -> bool:
        return module_version in self._matched

    def add_matched_path(self, path: ReferencePath) -> None:
        """Add every Reference of *path* and mark its leaf as matched.

        The first Reference of the path designates a root.
        """
        if len(path) == 0:
            raise ValueError("Cannot add an empty ReferencePath.")
        module_versions = [reference.module_version for reference in path]
        if any(module_version is None for module_version in module_versions):
            raise ValueError(f"ReferencePath {path} contains References to unknown modules.")

        self.add_root(module_versions[0])
        for referrer, reference in zip(module_versions, list(path)[1:]):
            self.add_reference(referrer, reference)

        leaf = module_versions[-1]
        if leaf not in self._matched:
            self._matched.append(leaf)

    def traverse(
        self,
        visitor: Visitor,
        start: Optional[ModuleVersion] = None,
    ) -> bool:
        """Visit every path from *start* (or from each root), parents first.

        *visitor* receives the path and whether its leaf is matched. Returns
        False if the traversal was aborted.
        """
        starts = [start] if start is not None else self._roots
        for module_version in starts:
            path = ReferencePath([Reference.to_module(module_version)])
            if not self._traverse(path, visitor):
                return False
        return True

    def _traverse(self, path: ReferencePath, visitor: Visitor) -> bool:
        module_version = path.leaf_module_version
        control = visitor(path, self.is_matched(module_version))
        if control is VisitControl.ABORT:
            return False
        if control is VisitControl.SKIP_CHILDREN:
            return True
        for reference in self._references.get(module_version, []):
            path.append(reference)
            try:
                if not self._traverse(path, visitor):
                    return False
            finally:
                path.remove_leaf_references()
        return True


@dataclass
class WalkReport:
    matched_paths: List[ReferencePath] = field(default_factory=list)
    visited: int = 0
    expanded: int = 0
    pruned: int = 0
    aborted: bool = False


class GraphWalker:
    """Depth-first, parent-first selection of the paths matched by a matcher.

    ``children`` returns the References of a ModuleVersion and is only called
    for nodes under which the matcher may still match. References to unknown
    modules are matched but never expanded.

    Each branch extends its own copy of the path so a walker could hand
    branches to concurrent workers; this implementation walks them in order.
    """

    def __init__(
        self,
        matcher: ReferencePathMatcher,
        children: ChildrenLookup,
        visitor: Optional[Callable[[ReferencePath], VisitControl]] = None,
    ) -> None:
        self.matcher = matcher
        self.children = children
        self.visitor = visitor

    def walk(self, roots: Iterable[ModuleVersion]) -> WalkReport:
        report = WalkReport()
        for root in roots:
            path = ReferencePath([Reference.to_module(root)])
            if not self._visit(path, report):
                report.aborted = True
                logger.info("Walk aborted at %s", path)
                break

        logger.info(
            "Walk done: %d visited, %d expanded, %d subtrees pruned, %d matched",
            report.visited,
            report.expanded,
            report.pruned,
            len(report.matched_paths),
        )
        return report

    def _visit(self, path: ReferencePath, report: WalkReport) -> bool:
        report.visited += 1

        if self.matcher.matches(path):
            report.matched_paths.append(path.copy())
            if self.visitor is not None:
                control = self.visitor(path)
                if control is VisitControl.ABORT:
                    return False
                if control is VisitControl.SKIP_CHILDREN:
                    return True

        module_version = path.leaf_module_version
        if module_version is None:
            return True

        if not self.matcher.can_match_children(path):
            report.pruned += 1
            logger.debug("Pruned subtree under %s", path)
            return True

        report.expanded += 1
        for reference in self.children(module_version):
            child_path = path.copy()
            child_path.append(reference)
            if not self._visit(child_path, report):
                return False
        return True
