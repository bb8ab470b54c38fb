"""Configuration manager for refgraph using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import toml

from .config import CONFIG_FILE, DEFAULT_LOG_LEVEL
from .errors import RefGraphError
from .model import ModuleRegistry
from .path_matcher import ElementPathMatcher

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    A missing file gives an empty config. A malformed one is reported and
    treated as empty.
    """
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", CONFIG_FILE, exc)
        return {}


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(CONFIG_FILE, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", CONFIG_FILE, exc)
        return False


# ------------------------------------------------------------------
# Named patterns
# ------------------------------------------------------------------

def load_patterns() -> Dict[str, str]:
    """Named patterns from the ``[patterns]`` section."""
    patterns = load_full_config().get("patterns", {})
    return {str(name): str(literal) for name, literal in patterns.items()}


def get_pattern(name: str) -> Optional[str]:
    return load_patterns().get(name)


def save_pattern(name: str, literal: str) -> bool:
    """Save a named pattern after checking that it compiles.

    Artifact elements naming a specific artifact are resolved against the
    ``[artifacts]`` section.

    Args:
        name: Pattern name, used as ``@name`` on the command line.
        literal: Pattern literal.

    Returns:
        True if saved successfully, False otherwise.

    Raises:
        PatternParseError: If the literal does not compile.
    """
    if not name or not name.replace("-", "").replace("_", "").isalnum():
        raise ValueError(f"Invalid pattern name '{name}'.")
    ElementPathMatcher.parse(literal, load_registry())

    config = load_full_config()
    config.setdefault("patterns", {})[name] = literal
    return _save_full_config(config)


def delete_pattern(name: str) -> bool:
    """Remove a named pattern. Returns False if it did not exist."""
    config = load_full_config()
    patterns = config.get("patterns", {})
    if name not in patterns:
        return False
    del patterns[name]
    return _save_full_config(config)


# ------------------------------------------------------------------
# Artifact mapping
# ------------------------------------------------------------------

def load_registry() -> ModuleRegistry:
    """ModuleRegistry seeded from the ``[artifacts]`` section.

    Invalid entries are reported and skipped.
    """
    registry = ModuleRegistry()
    for coordinates, node_path in load_full_config().get("artifacts", {}).items():
        try:
            registry.update(ModuleRegistry.from_mapping({coordinates: node_path}))
        except (RefGraphError, ValueError) as exc:
            logger.warning("Ignoring artifact mapping '%s': %s", coordinates, exc)
    return registry


# ------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------

def load_log_level() -> str:
    """Log level from the ``[logging]`` section, defaulting to WARNING."""
    level = str(load_full_config().get("logging", {}).get("level", DEFAULT_LOG_LEVEL)).upper()
    if level not in _LOG_LEVELS:
        logger.warning("Ignoring unknown log level '%s'", level)
        return DEFAULT_LOG_LEVEL
    return level
