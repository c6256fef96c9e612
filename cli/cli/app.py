"""sqlshift CLI application -- Typer-based interface to the SQL translator.

Provides commands to translate a statement between engines, inspect the
parsed AST, list the registered engines and replay the bundled demo
statements.  Human-readable output goes to *stderr* via Rich; translated SQL
and ``--json`` documents go to *stdout* so that pipelines can compose
cleanly.

Exit codes: 0 success, 1 the SQL did not parse, 2 the target engine cannot
express the statement, 3 bad input (unknown engine, unreadable SQL).
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from cli.display import (
    display_ast,
    display_engines,
    display_parse_failures,
    display_translation,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sqlshift",
    help="sqlshift - translate SQL statements between engine dialects",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False

# Statements replayed by ``sqlshift demo``: (sql, source, target).
DEMO_STATEMENTS: tuple[tuple[str, str, str], ...] = (
    ("select * from emps where id=1", "generic", "oracle"),
    ("select c1 from emps where `id`=1", "hive", "presto"),
)


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every trial parse and rendering step (DEBUG level).",
    ),
) -> None:
    """Global options applied to every command."""
    from shift_engine.config import load_settings
    from shift_engine.logging_config import configure_logging

    global _json_output  # noqa: PLW0603
    _json_output = json_mode
    configure_logging(load_settings(), verbose=verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_sql(sql: str) -> str:
    """Return *sql*, reading stdin when it is ``-``."""
    if sql == "-":
        sql = sys.stdin.read()
    if not sql.strip():
        console.print("[red]No SQL given.[/red]")
        raise typer.Exit(code=3)
    return sql


def _resolve_engine(value: str | None, fallback: Any, label: str) -> Any:
    """Turn a CLI engine name into an :class:`EngineType`, exiting on error."""
    from shift_engine.sql_toolkit import EngineType, UnsupportedEngineError

    if value is None:
        return fallback
    try:
        return EngineType.from_name(value)
    except UnsupportedEngineError as exc:
        known = ", ".join(e.value for e in EngineType)
        console.print(f"[red]Unknown {label} engine '{value}'. Known engines: {known}[/red]")
        raise typer.Exit(code=3) from exc


def _failure_dict(failure: Any) -> dict[str, Any]:
    return {
        "engine": failure.engine.value if failure.engine is not None else None,
        "message": failure.message,
        "line": failure.line,
        "column": failure.column,
        "offending_token": failure.offending_token,
    }


def _node_dict(node: Any) -> dict[str, Any]:
    """JSON-friendly view of a :class:`SqlNode` subtree."""
    data: dict[str, Any] = {"kind": node.kind.value, "op": node.op}
    if node.name:
        data["name"] = node.name
    if node.alias:
        data["alias"] = node.alias
    if node.quoted:
        data["quoted"] = True
    if node.children:
        data["children"] = [_node_dict(child) for child in node.children]
    return data


def _write_json(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _fail(exc: Exception) -> NoReturn:
    """Report a toolkit error and exit with the matching code."""
    from shift_engine.sql_toolkit import (
        AggregateParseError,
        SqlParseError,
        UnsupportedConstructError,
        UnsupportedEngineError,
    )

    if isinstance(exc, AggregateParseError):
        failures = list(exc.failures)
        code = 1
    elif isinstance(exc, SqlParseError):
        failures = [exc.failure]
        code = 1
    elif isinstance(exc, UnsupportedConstructError):
        failures = []
        code = 2
    elif isinstance(exc, UnsupportedEngineError):
        failures = []
        code = 3
    else:
        raise exc

    if _json_output:
        payload: dict[str, Any] = {"error": str(exc), "failures": [_failure_dict(f) for f in failures]}
        if isinstance(exc, UnsupportedConstructError):
            payload["construct"] = exc.construct
        _write_json(payload)
    else:
        console.print(f"[red]{escape(str(exc))}[/red]")
        if failures:
            display_parse_failures(console, failures)
    raise typer.Exit(code=code) from exc


# ---------------------------------------------------------------------------
# translate
# ---------------------------------------------------------------------------


@app.command()
def translate(
    sql: str = typer.Argument(..., help="SQL statement to translate, or '-' to read stdin."),
    source: str | None = typer.Option(
        None,
        "--from",
        "-f",
        help="Source engine, or 'auto' to detect it (default: SQLSHIFT_DEFAULT_SOURCE_ENGINE).",
    ),
    target: str | None = typer.Option(
        None,
        "--to",
        "-t",
        help="Target engine (default: SQLSHIFT_DEFAULT_TARGET_ENGINE).",
    ),
    tall: bool = typer.Option(False, "--tall", help="One clause item per line."),
    indent: int | None = typer.Option(None, "--indent", min=0, help="Indentation width in --tall mode."),
    lowercase_keywords: bool = typer.Option(False, "--lowercase-keywords", help="Emit keywords in lower case."),
    quote_all: bool = typer.Option(False, "--quote-all", help="Quote every identifier."),
    no_parens: bool = typer.Option(
        False,
        "--no-parens",
        help="Only keep parentheses present in the source instead of wrapping every compound expression.",
    ),
) -> None:
    """Translate a SQL statement from one engine's syntax to another's.

    Examples::

        sqlshift translate "select c1 from emps where \\`id\\`=1" --from hive --to presto
        echo "select 1" | sqlshift translate - --to oracle --tall
    """
    from shift_engine.config import load_settings
    from shift_engine.sql_toolkit import EngineType, LineFolding, SqlToolkitError, get_sql_toolkit
    from shift_engine.translator import translate_sql

    settings = load_settings()
    text = _read_sql(sql)
    source_engine = _resolve_engine(source, settings.default_source_engine, "source")
    target_engine = _resolve_engine(target, settings.default_target_engine, "target")
    if target_engine is EngineType.AUTO:
        console.print("[red]The target engine cannot be 'auto'.[/red]")
        raise typer.Exit(code=3)

    try:
        profile = get_sql_toolkit().registry.rendering_profile(target_engine)
        overrides: dict[str, Any] = {}
        if tall:
            overrides["line_folding"] = LineFolding.TALL
        if indent is not None:
            overrides["indentation"] = indent
        if lowercase_keywords:
            overrides["keywords_lower_case"] = True
        if quote_all:
            overrides["quote_all_identifiers"] = True
        if no_parens:
            overrides["always_parenthesize"] = False
        if overrides:
            profile = profile.derive(**overrides)

        result = translate_sql(text, source_engine, target_engine, profile=profile)
    except SqlToolkitError as exc:
        _fail(exc)

    if _json_output:
        _write_json(
            {
                "sql": result.output_sql,
                "source_engine": result.source_engine.value,
                "target_engine": result.target_engine.value,
                "detected": result.detected,
                "rejected_candidates": [_failure_dict(f) for f in result.failed_candidates],
            }
        )
        return

    display_translation(console, result)
    sys.stdout.write(result.output_sql + "\n")


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


@app.command()
def parse(
    sql: str = typer.Argument(..., help="SQL statement to parse, or '-' to read stdin."),
    source: str | None = typer.Option(
        None,
        "--from",
        "-f",
        help="Source engine, or 'auto' to detect it (default: SQLSHIFT_DEFAULT_SOURCE_ENGINE).",
    ),
) -> None:
    """Parse a SQL statement and show its dialect-neutral AST."""
    from shift_engine.config import load_settings
    from shift_engine.sql_toolkit import SqlToolkitError
    from shift_engine.translator import parse_sql

    settings = load_settings()
    text = _read_sql(sql)
    source_engine = _resolve_engine(source, settings.default_source_engine, "source")

    try:
        parsed = parse_sql(text, source_engine)
    except SqlToolkitError as exc:
        _fail(exc)

    if _json_output:
        _write_json(
            {
                "engine": parsed.engine.value,
                "detected": parsed.detected,
                "ast": _node_dict(parsed.node),
            }
        )
        return

    display_ast(console, parsed.node, parsed.engine.value, detected=parsed.detected)


# ---------------------------------------------------------------------------
# engines
# ---------------------------------------------------------------------------


@app.command()
def engines() -> None:
    """List the registered engines and the auto-detect order."""
    from shift_engine.sql_toolkit import get_sql_toolkit

    registry = get_sql_toolkit().registry

    if _json_output:
        _write_json(
            {
                "engines": [
                    {
                        "engine": engine.value,
                        "conformance": registry.entry(engine).parsing.conformance.value,
                        "read_dialect": registry.entry(engine).parsing.read_dialect,
                        "render_dialect": registry.entry(engine).rendering.dialect,
                    }
                    for engine in registry.engines()
                ],
                "auto_detect_candidates": [e.value for e in registry.auto_detect_candidates],
            }
        )
        return

    display_engines(console, registry)


# ---------------------------------------------------------------------------
# demo
# ---------------------------------------------------------------------------


@app.command()
def demo() -> None:
    """Replay the bundled demo statements through parse and render."""
    from shift_engine.sql_toolkit import SqlToolkitError
    from shift_engine.translator import parse_sql, render_sql

    runs: list[dict[str, Any]] = []
    for text, source, target in DEMO_STATEMENTS:
        try:
            parsed = parse_sql(text, source)
            output = render_sql(parsed, target)
        except SqlToolkitError as exc:
            _fail(exc)

        runs.append({"input": text, "source_engine": source, "target_engine": target, "sql": output})
        if not _json_output:
            display_ast(console, parsed.node, parsed.engine.value)
            console.print(f"[bold]{source}[/bold] -> [bold]{target}[/bold]")
            sys.stdout.write(output + "\n")

    if _json_output:
        _write_json({"runs": runs})
