"""Value types identifying modules, versions, artifacts and graph edges.

All types are immutable and hashable so they can be used as dict keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .errors import NodePathParseError, VersionParseError
from .node_path import NodePath

_VERSION_RE = re.compile(r"(D|S)/([a-zA-Z0-9.\-_]+)")
_ARTIFACT_VERSION_RE = re.compile(r"([a-zA-Z0-9.\-_]+?)(-SNAPSHOT)?")
_ARTIFACT_ID_PART = r"[a-zA-Z][a-zA-Z0-9.\-_]*"
_ARTIFACT_GROUP_ID_RE = re.compile(rf"({_ARTIFACT_ID_PART}):({_ARTIFACT_ID_PART})")
_GAV_RE = re.compile(rf"({_ARTIFACT_ID_PART}):({_ARTIFACT_ID_PART}):([a-zA-Z0-9.\-_]+)")

DYNAMIC_VERSION_SUFFIX = "-SNAPSHOT"


class VersionType(str, Enum):
    DYNAMIC = "dynamic"
    STATIC = "static"


@dataclass(frozen=True)
class Version:
    """Source-level version: ``D/<name>`` for a branch, ``S/<name>`` for a tag."""

    version_type: VersionType
    version: str

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Version cannot be the empty string.")

    @classmethod
    def parse(cls, literal: str) -> "Version":
        match = _VERSION_RE.fullmatch(literal)
        if match is None:
            raise VersionParseError("Version", literal)
        version_type = VersionType.DYNAMIC if match.group(1) == "D" else VersionType.STATIC
        return cls(version_type, match.group(2))

    @property
    def is_dynamic(self) -> bool:
        return self.version_type is VersionType.DYNAMIC

    def to_artifact_version(self) -> "ArtifactVersion":
        """Direct one-to-one mapping to the artifact counterpart."""
        return ArtifactVersion(self.version_type, self.version)

    def __str__(self) -> str:
        prefix = "D" if self.is_dynamic else "S"
        return f"{prefix}/{self.version}"


@dataclass(frozen=True)
class ArtifactVersion:
    """Artifact-level version; the ``-SNAPSHOT`` suffix marks a dynamic one."""

    version_type: VersionType
    version: str

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("ArtifactVersion cannot be the empty string.")

    @classmethod
    def parse(cls, literal: str) -> "ArtifactVersion":
        match = _ARTIFACT_VERSION_RE.fullmatch(literal)
        if match is None:
            raise VersionParseError("ArtifactVersion", literal)
        if match.group(2) is not None:
            return cls(VersionType.DYNAMIC, match.group(1))
        return cls(VersionType.STATIC, match.group(1))

    @property
    def is_dynamic(self) -> bool:
        return self.version_type is VersionType.DYNAMIC

    def to_version(self) -> Version:
        return Version(self.version_type, self.version)

    def __str__(self) -> str:
        if self.is_dynamic:
            return self.version + DYNAMIC_VERSION_SUFFIX
        return self.version


@dataclass(frozen=True)
class ModuleVersion:
    """A module (complete NodePath) at an optional Version.

    A missing version stands for the module's default version. The literal
    form is ``<NodePath>[:<Version>]``, e.g. ``Acme/module:D/master``.
    """

    node_path: NodePath
    version: Optional[Version] = None

    def __post_init__(self) -> None:
        if self.node_path.partial:
            raise ValueError(f"The NodePath '{self.node_path}' must not be partial.")

    @classmethod
    def parse(cls, literal: str) -> "ModuleVersion":
        node_path_literal, sep, version_literal = literal.partition(":")
        try:
            node_path = NodePath.parse(node_path_literal)
        except NodePathParseError as exc:
            raise VersionParseError("ModuleVersion", literal, exc.position) from exc
        if node_path.partial:
            raise VersionParseError("ModuleVersion", literal, len(node_path_literal))
        if not sep:
            return cls(node_path)
        try:
            version = Version.parse(version_literal)
        except VersionParseError as exc:
            raise VersionParseError("ModuleVersion", literal, len(node_path_literal) + 1) from exc
        return cls(node_path, version)

    def __str__(self) -> str:
        if self.version is None:
            return str(self.node_path)
        return f"{self.node_path}:{self.version}"


@dataclass(frozen=True)
class ArtifactGroupId:
    group_id: str
    artifact_id: str

    @classmethod
    def parse(cls, literal: str) -> "ArtifactGroupId":
        match = _ARTIFACT_GROUP_ID_RE.fullmatch(literal)
        if match is None:
            raise VersionParseError("ArtifactGroupId", literal)
        return cls(match.group(1), match.group(2))

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass(frozen=True)
class ArtifactGroupIdVersion:
    """Full artifact coordinates, ``groupId:artifactId:version``."""

    artifact_group_id: ArtifactGroupId
    artifact_version: ArtifactVersion

    @classmethod
    def parse(cls, literal: str) -> "ArtifactGroupIdVersion":
        match = _GAV_RE.fullmatch(literal)
        if match is None:
            raise VersionParseError("ArtifactGroupIdVersion", literal)
        return cls(
            ArtifactGroupId(match.group(1), match.group(2)),
            ArtifactVersion.parse(match.group(3)),
        )

    def __str__(self) -> str:
        return f"{self.artifact_group_id}:{self.artifact_version}"


@dataclass(frozen=True)
class Reference:
    """One edge of the reference graph.

    A reference identifies the referenced module at the source level
    (``module_version``), at the artifact level (``artifact_group_id`` and
    ``artifact_version``), or both. ``impl_data`` is opaque data describing how
    the reference is expressed within its referrer (a build file location, for
    instance); it does not take part in equality.
    """

    module_version: Optional[ModuleVersion] = None
    artifact_group_id: Optional[ArtifactGroupId] = None
    artifact_version: Optional[ArtifactVersion] = None
    impl_data: Any = field(default=None, compare=False, hash=False)

    def __post_init__(self) -> None:
        if self.module_version is None and self.artifact_group_id is None:
            raise ValueError("A Reference needs a ModuleVersion or an ArtifactGroupId.")

    @classmethod
    def to_module(cls, module_version: ModuleVersion, impl_data: Any = None) -> "Reference":
        return cls(module_version=module_version, impl_data=impl_data)

    @property
    def node_path(self) -> Optional[NodePath]:
        """NodePath of the referenced module, None when the module is unknown."""
        if self.module_version is None:
            return None
        return self.module_version.node_path

    def equals_no_version(self, other: "Reference") -> bool:
        """Compare identities while ignoring Version and ArtifactVersion."""
        if self.artifact_group_id != other.artifact_group_id:
            return False
        return self.node_path == other.node_path

    def __str__(self) -> str:
        artifact = str(self.artifact_group_id)
        if self.artifact_version is not None:
            artifact = f"{artifact}:{self.artifact_version}"
        if self.module_version is None:
            return artifact
        if self.artifact_group_id is not None:
            return f"{self.module_version} ({artifact})"
        return str(self.module_version)
