"""Rich output formatting for the sqlshift CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that translated SQL on *stdout* is never polluted with
human-readable decoration.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from shift_engine.sql_toolkit import (
        DialectRegistry,
        ParseFailure,
        SqlNode,
        TranslationResult,
    )


# ---------------------------------------------------------------------------
# Node kind colour mapping
# ---------------------------------------------------------------------------

_KIND_COLOURS: dict[str, str] = {
    "select": "bold cyan",
    "union": "bold cyan",
    "insert": "bold cyan",
    "update": "bold cyan",
    "delete": "bold cyan",
    "table": "green",
    "column": "yellow",
    "identifier": "white",
    "literal": "magenta",
    "predicate": "blue",
    "operator": "blue",
}


def _node_label(node: SqlNode) -> str:
    """Return a Rich markup label for one AST node."""
    colour = _KIND_COLOURS.get(node.kind.value, "dim")
    label = f"[{colour}]{node.kind.value}[/{colour}]"
    if node.op and node.op != node.kind.value:
        label += f" [dim]{node.op}[/dim]"
    if node.name:
        quoted = " [dim](quoted)[/dim]" if node.quoted else ""
        label += f" [bold]{escape(node.name)}[/bold]{quoted}"
    if node.alias:
        label += f" AS [italic]{escape(node.alias)}[/italic]"
    return label


def _add_branch(parent: Tree, node: SqlNode) -> None:
    branch = parent.add(_node_label(node))
    for child in node.children:
        _add_branch(branch, child)


# ---------------------------------------------------------------------------
# AST tree
# ---------------------------------------------------------------------------


def display_ast(console: Console, node: SqlNode, engine: str, *, detected: bool = False) -> None:
    """Render a parsed statement as a tree.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    node:
        Root of the parsed statement.
    engine:
        Engine whose grammar accepted the statement.
    detected:
        Whether *engine* was found by auto-detection.
    """
    how = "auto-detected" if detected else "requested"
    tree = Tree(_node_label(node), guide_style="dim")
    for child in node.children:
        _add_branch(tree, child)
    console.print(
        Panel(
            tree,
            title=f"AST ({engine}, {how})",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# Translation summary
# ---------------------------------------------------------------------------


def display_translation(console: Console, result: TranslationResult) -> None:
    """Show which engines a translation went between.

    The translated SQL itself goes to stdout; this is the stderr summary.
    """
    source = result.source_engine.value
    if result.detected:
        source += " [dim](auto-detected)[/dim]"
    console.print(f"[bold]{source}[/bold] -> [bold]{result.target_engine.value}[/bold]")
    if result.failed_candidates:
        display_parse_failures(console, result.failed_candidates, title="Rejected Candidates")


# ---------------------------------------------------------------------------
# Parse failures
# ---------------------------------------------------------------------------


def display_parse_failures(
    console: Console,
    failures: Sequence[ParseFailure],
    *,
    title: str = "Parse Failures",
) -> None:
    """Render one row per engine that rejected the SQL text."""
    table = Table(title=title, show_lines=False, pad_edge=True, expand=False)
    table.add_column("Engine", style="bold")
    table.add_column("Line", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Near")
    table.add_column("Message", style="red")

    for failure in failures:
        table.add_row(
            failure.engine.value if failure.engine is not None else "-",
            str(failure.line) if failure.line is not None else "-",
            str(failure.column) if failure.column is not None else "-",
            escape(failure.offending_token or "-"),
            escape(failure.message),
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Engine registry
# ---------------------------------------------------------------------------


def display_engines(console: Console, registry: DialectRegistry) -> None:
    """Render the dialect registry as a table.

    Auto-detect candidates are numbered in the order they are tried.
    """
    candidates = registry.auto_detect_candidates
    table = Table(title="Registered Engines", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Engine", style="bold")
    table.add_column("Conformance")
    table.add_column("Grammar")
    table.add_column("Render Dialect")
    table.add_column("Quoting")
    table.add_column("Auto-detect", justify="center")

    for engine in registry.engines():
        entry = registry.entry(engine)
        order = f"[green]{candidates.index(engine) + 1}[/green]" if engine in candidates else "[dim]-[/dim]"
        table.add_row(
            engine.value,
            entry.parsing.conformance.value,
            entry.parsing.read_dialect or "ansi",
            entry.rendering.dialect or "ansi",
            "always" if entry.rendering.quote_all_identifiers else "when needed",
            order,
        )

    console.print(table)
