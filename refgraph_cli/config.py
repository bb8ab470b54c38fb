"""Configuration paths and defaults for refgraph."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("REFGRAPH_HOME", str(Path.home() / ".refgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
DEFAULT_LOG_LEVEL = "WARNING"
PATTERN_REFERENCE_PREFIX = "@"
