"""Public entry points: parse SQL under one engine, render it under another.

All SQL work is delegated to :mod:`shift_engine.sql_toolkit`; this module
only resolves engine names and carries the engine a statement was read with
alongside its AST.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shift_engine.sql_toolkit import (
    EngineType,
    RenderingProfile,
    SqlNode,
    TranslationResult,
    get_sql_toolkit,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParsedStatement:
    """An AST together with the engine whose grammar accepted it."""

    node: SqlNode
    engine: EngineType
    detected: bool = False

    def same_structure(self, other: ParsedStatement) -> bool:
        """Compare ASTs using the identifier case rules of this statement's engine."""
        profile = get_sql_toolkit().registry.parsing_profile(self.engine)
        return self.node.structurally_equal(other.node, case_sensitive=profile.case_sensitive)


def _engine(value: EngineType | str) -> EngineType:
    if isinstance(value, EngineType):
        return value
    return EngineType.from_name(value)


def parse_sql(sql: str, engine: EngineType | str = EngineType.AUTO) -> ParsedStatement:
    """Parse a single SQL statement.

    Parameters
    ----------
    sql:
        One SQL statement; a trailing ``;`` is tolerated.
    engine:
        Source engine, or ``auto`` to try the auto-detect candidates in
        order.

    Raises
    ------
    SqlParseError
        The named engine rejected *sql*.
    AggregateParseError
        ``auto`` was requested and every candidate rejected *sql*.
    UnsupportedEngineError
        *engine* is unknown, or no auto-detect candidates are configured.
    """
    tk = get_sql_toolkit()
    source = _engine(engine)

    if source is EngineType.AUTO:
        detection = tk.detector.detect(sql)
        return ParsedStatement(node=detection.node, engine=detection.engine, detected=True)

    node = tk.parser.parse(sql, tk.registry.parsing_profile(source), source)
    return ParsedStatement(node=node, engine=source)


def render_sql(
    node: SqlNode | ParsedStatement,
    engine: EngineType | str,
    *,
    profile: RenderingProfile | None = None,
) -> str:
    """Render *node* using *engine*'s rendering profile.

    *profile*, when given, replaces the registered profile for this call
    (typically one derived with :meth:`RenderingProfile.derive`).

    Raises
    ------
    UnsupportedConstructError
        The target engine cannot express part of the statement.
    UnsupportedEngineError
        *engine* is unknown or ``auto``.
    """
    tk = get_sql_toolkit()
    if isinstance(node, ParsedStatement):
        node = node.node
    registered = tk.registry.rendering_profile(_engine(engine))
    return tk.renderer.render(node, profile if profile is not None else registered)


def translate_sql(
    sql: str,
    source: EngineType | str,
    target: EngineType | str,
    *,
    profile: RenderingProfile | None = None,
) -> TranslationResult:
    """Parse *sql* as *source* (or detect it) and render it as *target*."""
    tk = get_sql_toolkit()
    result = tk.translator.translate(sql, _engine(source), _engine(target), rendering=profile)
    if result.detected:
        logger.debug(
            "Source engine detected as %s (%d candidate(s) rejected the text first)",
            result.source_engine.value,
            len(result.failed_candidates),
        )
    return result
