"""Module model lookups needed while compiling patterns.

Pattern compilation only needs one capability from the model: mapping literal
artifact coordinates to the module producing them. It is injected as any
object implementing :class:`ArtifactResolver`, so matchers can be built and
tested without a real model behind them.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Protocol, Set

from .models import ArtifactGroupId
from .node_path import NodePath

logger = logging.getLogger(__name__)


class ArtifactResolver(Protocol):
    def resolve_artifact(self, group_id: str, artifact_id: str) -> Optional[NodePath]:
        """NodePath of the module producing the artifact, or None when unknown."""
        ...


class ModuleRegistry:
    """In-memory model: known modules and the artifacts each produces."""

    def __init__(self) -> None:
        self._modules: Set[NodePath] = set()
        self._artifacts: Dict[ArtifactGroupId, NodePath] = {}

    @classmethod
    def from_mapping(cls, artifacts: Mapping[str, str]) -> "ModuleRegistry":
        """Build a registry from ``{"groupId:artifactId": "Node/Path"}`` entries."""
        registry = cls()
        for coordinates, node_path in artifacts.items():
            registry.register_artifact(ArtifactGroupId.parse(coordinates), NodePath.parse(node_path))
        return registry

    def register_module(self, node_path: NodePath) -> None:
        if node_path.partial:
            raise ValueError(f"The NodePath '{node_path}' must not be partial.")
        self._modules.add(node_path)

    def register_artifact(self, artifact_group_id: ArtifactGroupId, node_path: NodePath) -> None:
        self.register_module(node_path)
        previous = self._artifacts.get(artifact_group_id)
        if previous is not None and previous != node_path:
            raise ValueError(
                f"Artifact {artifact_group_id} is already produced by module {previous}."
            )
        self._artifacts[artifact_group_id] = node_path
        logger.debug("Artifact %s produced by module %s", artifact_group_id, node_path)

    def update(self, other: "ModuleRegistry") -> None:
        """Register every module and artifact known to *other*."""
        for node_path in other.modules:
            self.register_module(node_path)
        for artifact_group_id, node_path in other.artifacts.items():
            self.register_artifact(artifact_group_id, node_path)

    def has_module(self, node_path: NodePath) -> bool:
        return node_path in self._modules

    @property
    def modules(self) -> Iterable[NodePath]:
        return sorted(self._modules, key=str)

    @property
    def artifacts(self) -> Mapping[ArtifactGroupId, NodePath]:
        return dict(self._artifacts)

    def resolve_artifact(self, group_id: str, artifact_id: str) -> Optional[NodePath]:
        return self._artifacts.get(ArtifactGroupId(group_id, artifact_id))
