"""Reference path patterns and pruned selection over module reference graphs."""

__version__ = "0.1.0"
