"""Load a reference graph described in a TOML file.

Example::

    roots = ["Domain1/app-a:D/master"]

    [artifacts]
    "com.acme:lib-b" = "Domain1/lib-b"

    [[references]]
    from = "Domain1/app-a:D/master"
    to = "Domain1/lib-b:S/1.0"
    artifact = "com.acme:lib-b:1.0"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import toml

from .errors import CycleDetectedError, GraphFileError, RefGraphError
from .model import ModuleRegistry
from .models import ArtifactGroupIdVersion, ModuleVersion, Reference
from .reference_graph import ReferenceGraph

logger = logging.getLogger(__name__)


def _module_version(value: Any, where: str) -> ModuleVersion:
    if not isinstance(value, str):
        raise GraphFileError(f"{where}: expected a ModuleVersion string, got {value!r}.")
    try:
        return ModuleVersion.parse(value)
    except RefGraphError as exc:
        raise GraphFileError(f"{where}: {exc}") from exc


def _reference(entry: Dict[str, Any], where: str) -> Tuple[ModuleVersion, Reference]:
    if not isinstance(entry, dict):
        raise GraphFileError(f"{where}: expected a table.")
    unknown = set(entry) - {"from", "to", "artifact"}
    if unknown:
        raise GraphFileError(f"{where}: unknown keys {', '.join(sorted(unknown))}.")
    if "from" not in entry or "to" not in entry:
        raise GraphFileError(f"{where}: 'from' and 'to' are required.")

    referrer = _module_version(entry["from"], f"{where}.from")
    referred = _module_version(entry["to"], f"{where}.to")
    if "artifact" not in entry:
        return referrer, Reference.to_module(referred, impl_data=where)

    try:
        gav = ArtifactGroupIdVersion.parse(str(entry["artifact"]))
    except RefGraphError as exc:
        raise GraphFileError(f"{where}.artifact: {exc}") from exc
    return referrer, Reference(
        module_version=referred,
        artifact_group_id=gav.artifact_group_id,
        artifact_version=gav.artifact_version,
        impl_data=where,
    )


def _register_reference_artifact(registry: ModuleRegistry, reference: Reference, where: str) -> None:
    # An artifact carried by a reference is produced by the module it refers to.
    if reference.artifact_group_id is None:
        return
    try:
        registry.register_artifact(reference.artifact_group_id, reference.module_version.node_path)
    except ValueError as exc:
        raise GraphFileError(
            f"{where}: artifact {reference.artifact_group_id} does not belong to "
            f"{reference.module_version.node_path}. {exc}"
        ) from exc


def parse_graph(document: Dict[str, Any]) -> Tuple[ReferenceGraph, ModuleRegistry]:
    """Build the graph and module registry from a decoded TOML document."""
    roots = document.get("roots", [])
    if not isinstance(roots, list):
        raise GraphFileError("'roots' must be an array of ModuleVersion strings.")

    artifacts = document.get("artifacts", {})
    if not isinstance(artifacts, dict):
        raise GraphFileError("'artifacts' must be a table.")
    try:
        registry = ModuleRegistry.from_mapping(artifacts)
    except (RefGraphError, ValueError) as exc:
        raise GraphFileError(f"artifacts: {exc}") from exc

    graph = ReferenceGraph()
    for index, root in enumerate(roots):
        module_version = _module_version(root, f"roots[{index}]")
        graph.add_root(module_version)
        registry.register_module(module_version.node_path)

    references = document.get("references", [])
    if not isinstance(references, list):
        raise GraphFileError("'references' must be an array of tables.")
    for index, entry in enumerate(references):
        where = f"references[{index}]"
        referrer, reference = _reference(entry, where)
        if not graph.module_version_exists(referrer):
            raise GraphFileError(f"{where}: referrer {referrer} is neither a root nor referenced earlier.")
        _register_reference_artifact(registry, reference, where)
        try:
            graph.add_reference(referrer, reference)
        except CycleDetectedError as exc:
            raise GraphFileError(f"{where}: {exc}") from exc
        registry.register_module(reference.module_version.node_path)

    logger.debug(
        "Loaded graph with %d roots and %d module versions",
        len(graph.roots),
        len(graph.module_versions()),
    )
    return graph, registry


def load_graph_file(path: Union[str, Path]) -> Tuple[ReferenceGraph, ModuleRegistry]:
    """Load a graph description file.

    Raises GraphFileError when the file is missing or malformed.
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            document = toml.load(f)
    except FileNotFoundError as exc:
        raise GraphFileError(f"Graph file {path} does not exist.") from exc
    except toml.TomlDecodeError as exc:
        raise GraphFileError(f"Graph file {path} is not valid TOML: {exc}") from exc
    return parse_graph(document)
