"""Acyclic walk from a traversal root to the current node."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .errors import CycleDetectedError
from .models import ModuleVersion, Reference
from .node_path import NodePath


class ReferencePath:
    """Ordered sequence of References with no module occurring twice.

    Behaves like a read-only sequence (``len``, indexing, iteration) and adds
    the cycle-checked mutators a traversal needs. Instances are not meant to be
    shared between traversal branches: fork with :meth:`copy`.
    """

    def __init__(self, references: Optional[Iterable[Reference]] = None) -> None:
        self._references: List[Reference] = []
        if references is not None:
            self.extend(references)

    def copy(self) -> "ReferencePath":
        clone = ReferencePath()
        clone._references = list(self._references)
        return clone

    def contains_module(self, node_path: NodePath) -> bool:
        return any(ref.node_path == node_path for ref in self._references)

    def index_of_module(self, node_path: NodePath) -> int:
        for index, ref in enumerate(self._references):
            if ref.node_path == node_path:
                return index
        return -1

    def append(self, reference: Reference) -> None:
        """Add *reference* at the leaf end.

        Raises CycleDetectedError if the referenced module already occurs in
        the path.
        """
        node_path = reference.node_path
        if node_path is not None and self.contains_module(node_path):
            raise CycleDetectedError(self, reference)
        self._references.append(reference)

    def extend(self, references: Iterable[Reference]) -> None:
        for reference in references:
            self.append(reference)

    def remove_root_references(self, count: int = 1) -> None:
        if count < 0 or count > len(self._references):
            raise IndexError(f"Cannot remove {count} references from a path of {len(self)}.")
        del self._references[:count]

    def remove_leaf_references(self, count: int = 1) -> None:
        if count < 0 or count > len(self._references):
            raise IndexError(f"Cannot remove {count} references from a path of {len(self)}.")
        del self._references[len(self._references) - count:]

    @property
    def leaf(self) -> Reference:
        return self._references[-1]

    @property
    def leaf_module_version(self) -> Optional[ModuleVersion]:
        return self._references[-1].module_version

    def find_module_version(self, module_version: ModuleVersion) -> int:
        """Index of *module_version* in the path, or -1.

        When the searched ModuleVersion has no Version only NodePaths are compared.
        """
        for index, ref in enumerate(self._references):
            candidate = ref.module_version
            if candidate is None or candidate.node_path != module_version.node_path:
                continue
            if module_version.version is None or candidate.version == module_version.version:
                return index
        return -1

    def __len__(self) -> int:
        return len(self._references)

    def __getitem__(self, index: int) -> Reference:
        return self._references[index]

    def __iter__(self) -> Iterator[Reference]:
        return iter(self._references)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferencePath):
            return NotImplemented
        return self._references == other._references

    def __repr__(self) -> str:
        return f"ReferencePath({self})"

    def __str__(self) -> str:
        # "->" joins a reference to its parent when we know where it is expressed,
        # "|>" marks a reference rebuilt without that information.
        parts: List[str] = []
        for index, ref in enumerate(self._references):
            if index:
                parts.append("->" if ref.impl_data is not None else "|>")
            parts.append(str(ref))
        return "".join(parts)
