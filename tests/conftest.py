"""Pytest configuration and fixtures for refgraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from refgraph_cli.model import ModuleRegistry
from refgraph_cli.models import ArtifactGroupId
from refgraph_cli.node_path import NodePath


SAMPLE_GRAPH = """\
roots = ["Domain1/app-a:D/master", "Domain2/app-c:D/develop"]

[artifacts]
"com.acme:lib-b" = "Domain1/lib-b"
"com.acme:lib-d" = "Shared/lib-d"

[[references]]
from = "Domain1/app-a:D/master"
to = "Domain1/lib-b:S/1.0"
artifact = "com.acme:lib-b:1.0"

[[references]]
from = "Domain1/lib-b:S/1.0"
to = "Shared/lib-d:S/2.1"
artifact = "com.acme:lib-d:2.1"

[[references]]
from = "Domain2/app-c:D/develop"
to = "Domain1/lib-b:D/master"
artifact = "com.acme:lib-b:master-SNAPSHOT"

[[references]]
from = "Domain1/lib-b:D/master"
to = "Shared/lib-d:S/2.1"
artifact = "com.acme:lib-d:2.1"
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point the config file to a temporary location for every test."""
    config_file = temp_dir / "home" / "config.toml"
    monkeypatch.setattr("refgraph_cli.config.BASE_DIR", config_file.parent)
    monkeypatch.setattr("refgraph_cli.config.CONFIG_FILE", config_file)
    monkeypatch.setattr("refgraph_cli.config_manager.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def sample_graph_file(temp_dir: Path) -> Path:
    graph_file = temp_dir / "graph.toml"
    graph_file.write_text(SAMPLE_GRAPH)
    return graph_file


@pytest.fixture
def registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    registry.register_artifact(ArtifactGroupId("com.acme", "lib-b"), NodePath.parse("Domain1/lib-b"))
    registry.register_artifact(ArtifactGroupId("com.acme", "lib-d"), NodePath.parse("Shared/lib-d"))
    return registry
