"""Typer-based CLI for refgraph reference path patterns."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__, config, config_manager
from .element_matcher import AnyElement, AnySequenceElement, ArtifactElement, ElementMatcher
from .errors import CycleDetectedError, GraphFileError, PatternParseError, RefGraphError
from .graph_file import load_graph_file
from .matchers import AllMatcher, AndMatcher, NotMatcher, OrMatcher, ReferencePathMatcher
from .model import ModuleRegistry
from .models import ArtifactGroupIdVersion, ModuleVersion, Reference
from .path_matcher import ElementPathMatcher
from .reference_graph import GraphWalker, ReferenceGraph
from .reference_path import ReferencePath

console = Console()

app = typer.Typer(
    help="🔗 refgraph — select module reference paths with path patterns.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

pattern_app = typer.Typer(
    help="📌 Patterns — save and list named patterns, usable as @name.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(pattern_app, name="pattern")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"refgraph v{__version__}")
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to the [logging] config.",
    ),
):
    """refgraph: match reference paths and walk reference graphs without visiting pruned subtrees."""
    level = (log_level or config_manager.load_log_level()).upper()
    if level not in _LOG_LEVELS:
        raise typer.BadParameter(f"Unknown log level '{log_level}'.", param_hint="--log-level")
    _setup_logging(level)


def _resolve_literal(pattern: str) -> str:
    if not pattern.startswith(config.PATTERN_REFERENCE_PREFIX):
        return pattern
    name = pattern[len(config.PATTERN_REFERENCE_PREFIX):]
    literal = config_manager.get_pattern(name)
    if literal is None:
        raise typer.BadParameter(f"Unknown pattern '{pattern}'. Use 'refgraph pattern list'.")
    return literal


def _compile(pattern: str, registry: ModuleRegistry) -> ElementPathMatcher:
    literal = _resolve_literal(pattern)
    try:
        return ElementPathMatcher.parse(literal, registry)
    except PatternParseError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_graph(graph_file: Path) -> tuple[ReferenceGraph, ModuleRegistry]:
    try:
        return load_graph_file(graph_file)
    except GraphFileError as exc:
        console.print(f"[red]❌ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def _registry(graph_registry: Optional[ModuleRegistry] = None) -> ModuleRegistry:
    registry = config_manager.load_registry()
    if graph_registry is not None:
        try:
            registry.update(graph_registry)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    return registry


def _element_kind(element: ElementMatcher) -> str:
    if isinstance(element, AnySequenceElement):
        return "any sequence"
    if isinstance(element, AnyElement):
        return "any"
    if isinstance(element, ArtifactElement):
        return "artifact"
    return "source"


def _element_parts(element: ElementMatcher) -> str:
    if isinstance(element, (AnyElement, AnySequenceElement)):
        return ""
    if isinstance(element, ArtifactElement):
        named = [
            ("group", element.group_id),
            ("artifact", element.artifact_id),
            ("version", element.artifact_version),
        ]
    else:
        named = [("node path", element.node_path), ("version", element.version)]
    return ", ".join(f"{label}={part}" for label, part in named if part is not None)


def _parse_reference(literal: str, registry: ModuleRegistry) -> Reference:
    """``ModuleVersion[=groupId:artifactId:version]``.

    The artifact must not be mapped to a module other than the referenced one.
    """
    module_literal, sep, gav_literal = literal.partition("=")
    module_version = ModuleVersion.parse(module_literal)
    if not sep:
        return Reference.to_module(module_version)
    gav = ArtifactGroupIdVersion.parse(gav_literal)
    producer = registry.resolve_artifact(gav.artifact_group_id.group_id, gav.artifact_group_id.artifact_id)
    if producer is not None and producer != module_version.node_path:
        raise ValueError(
            f"Artifact {gav.artifact_group_id} is produced by module {producer}, not {module_version.node_path}."
        )
    return Reference(
        module_version=module_version,
        artifact_group_id=gav.artifact_group_id,
        artifact_version=gav.artifact_version,
    )


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


@app.command("check")
def check(
    pattern: str = typer.Argument(..., help="Pattern literal, or @name of a saved pattern."),
    graph_file: Optional[Path] = typer.Option(
        None, "--graph", "-g", exists=True, dir_okay=False, help="Graph file whose [artifacts] resolve artifact elements."
    ),
):
    """Compile a pattern and show its elements."""
    graph_registry = _load_graph(graph_file)[1] if graph_file else None
    matcher = _compile(pattern, _registry(graph_registry))

    console.print(f"Pattern: [bold]{escape(str(matcher))}[/bold]")
    table = Table(title="Elements")
    table.add_column("#", justify="right")
    table.add_column("Element")
    table.add_column("Kind")
    table.add_column("Parts")
    table.add_column("Pinned module")
    for index, element in enumerate(matcher.elements):
        pinned = element.pinned_module
        table.add_row(
            str(index),
            escape(str(element)),
            _element_kind(element),
            escape(_element_parts(element)),
            str(pinned) if pinned is not None else "",
        )
    console.print(table)
    length = "fixed" if matcher.is_fixed_length else "variable"
    console.print(f"Length: {length} | Minimum references: {matcher.fixed_length}")


@app.command("match")
def match(
    pattern: str = typer.Argument(..., help="Pattern literal, or @name of a saved pattern."),
    references: Optional[List[str]] = typer.Argument(
        None, help="References from root to leaf: ModuleVersion[=groupId:artifactId:version]."
    ),
    graph_file: Optional[Path] = typer.Option(
        None, "--graph", "-g", exists=True, dir_okay=False, help="Graph file whose [artifacts] resolve artifact elements."
    ),
):
    """Evaluate a pattern against one reference path."""
    graph_registry = _load_graph(graph_file)[1] if graph_file else None
    registry = _registry(graph_registry)
    matcher = _compile(pattern, registry)

    path = ReferencePath()
    for literal in references or []:
        try:
            path.append(_parse_reference(literal, registry))
        except (RefGraphError, ValueError) as exc:
            raise typer.BadParameter(str(exc), param_hint="REFERENCES") from exc

    console.print(f"Path: {escape(str(path))}")
    console.print(f"Matches: {_yes_no(matcher.matches(path))}")
    console.print(f"Can match children: {_yes_no(matcher.can_match_children(path))}")


def _build_selection(
    includes: List[str], excludes: List[str], registry: ModuleRegistry
) -> ReferencePathMatcher:
    if not includes and not excludes:
        return AllMatcher()
    selection = AndMatcher()
    if includes:
        selection.add(OrMatcher([_compile(p, registry) for p in includes]))
    if excludes:
        selection.add(NotMatcher(OrMatcher([_compile(p, registry) for p in excludes])))
    return selection


@app.command("select")
def select(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph description TOML file."),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Select paths matching this pattern."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Reject paths matching this pattern."),
    root: Optional[List[str]] = typer.Option(
        None, "--root", "-r", help="Start from this ModuleVersion instead of the graph roots."
    ),
):
    """Walk a graph and list the reference paths selected by the patterns."""
    graph, graph_registry = _load_graph(graph_file)
    matcher = _build_selection(include or [], exclude or [], _registry(graph_registry))

    roots = graph.roots
    if root:
        roots = []
        for literal in root:
            try:
                module_version = ModuleVersion.parse(literal)
            except RefGraphError as exc:
                raise typer.BadParameter(str(exc), param_hint="--root") from exc
            if not graph.module_version_exists(module_version):
                raise typer.BadParameter(f"{module_version} is not part of the graph.", param_hint="--root")
            roots.append(module_version)

    try:
        report = GraphWalker(matcher, graph.references_of).walk(roots)
    except CycleDetectedError as exc:
        console.print(f"[red]❌ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    if not report.matched_paths:
        console.print("[yellow]No reference paths matched.[/yellow]")
    else:
        table = Table(title="Matched reference paths")
        table.add_column("#", justify="right")
        table.add_column("Path")
        for index, path in enumerate(report.matched_paths, start=1):
            table.add_row(str(index), escape(str(path)))
        console.print(table)

    console.print(
        f"Matched: {len(report.matched_paths)} | Visited: {report.visited} | "
        f"Expanded: {report.expanded} | Pruned: {report.pruned}"
    )


@pattern_app.command("save")
def pattern_save(
    name: str = typer.Argument(..., help="Pattern name."),
    pattern: str = typer.Argument(..., help="Pattern literal."),
):
    """Save a named pattern in the config file."""
    try:
        saved = config_manager.save_pattern(name, pattern)
    except (RefGraphError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    if not saved:
        console.print(f"[red]❌ Could not write {config_manager.CONFIG_FILE}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Saved pattern '@{escape(name)}'.")


@pattern_app.command("list")
def pattern_list():
    """List saved patterns."""
    patterns = config_manager.load_patterns()
    if not patterns:
        console.print("No saved patterns.")
        return
    table = Table(title="Saved patterns")
    table.add_column("Name")
    table.add_column("Pattern")
    for name, literal in sorted(patterns.items()):
        table.add_row(f"@{escape(name)}", escape(literal))
    console.print(table)


@pattern_app.command("delete")
def pattern_delete(name: str = typer.Argument(..., help="Pattern name.")):
    """Delete a saved pattern."""
    if not config_manager.delete_pattern(name):
        console.print(f"[red]❌ No pattern named '{escape(name)}'.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Deleted pattern '@{escape(name)}'.")


if __name__ == "__main__":
    app()
