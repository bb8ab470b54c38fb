"""Builders for the value objects used across the tests."""

from refgraph_cli.models import ArtifactGroupId, ArtifactVersion, ModuleVersion, Reference
from refgraph_cli.reference_path import ReferencePath

ARTIFACT_GROUP = "com.acme"


def mv(literal: str) -> ModuleVersion:
    return ModuleVersion.parse(literal)


def ref(literal: str) -> Reference:
    return Reference.to_module(ModuleVersion.parse(literal))


def artifact_ref(literal: str, artifact_version: str = "1.0") -> Reference:
    """Reference to *literal* through the ``com.acme:<module name>`` artifact."""
    module_version = ModuleVersion.parse(literal)
    return Reference(
        module_version=module_version,
        artifact_group_id=ArtifactGroupId(ARTIFACT_GROUP, module_version.node_path.module_name),
        artifact_version=ArtifactVersion.parse(artifact_version),
    )


def path_of(*literals: str) -> ReferencePath:
    return ReferencePath(ref(literal) for literal in literals)
