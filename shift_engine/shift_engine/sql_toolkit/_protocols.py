"""SQL toolkit protocol definitions.

These define the interface contract that ANY implementation must satisfy.
Consumer code depends on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._registry import DialectRegistry
from ._types import (
    DetectionResult,
    EngineType,
    ParseOutcome,
    ParsingProfile,
    RenderingProfile,
    SqlNode,
    TranslationResult,
)

# ---------------------------------------------------------------------------
# Individual Capability Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlParser(Protocol):
    """Parse a single SQL statement under one parsing profile."""

    def parse(self, sql: str, profile: ParsingProfile, engine: EngineType | None = None) -> SqlNode:
        """Parse exactly one statement.

        Args:
            sql: The SQL text.  A trailing ``;`` is tolerated.
            profile: Resolved parsing profile (not an engine identifier).
            engine: Engine the profile belongs to, recorded on failures.

        Raises:
            SqlParseError: On any lexical or grammar violation, or when the
                text holds zero or several statements.
        """
        ...

    def try_parse(self, sql: str, profile: ParsingProfile, engine: EngineType | None = None) -> ParseOutcome:
        """Like :meth:`parse` but reports failure as a value, never raising."""
        ...


@runtime_checkable
class SqlRenderer(Protocol):
    """Render AST nodes back to SQL strings."""

    def render(self, node: SqlNode, profile: RenderingProfile) -> str:
        """Render *node* strictly according to *profile*.

        Rendering is pure: the same node and profile always produce the same
        text, and *node* is never modified.

        Raises:
            UnsupportedConstructError: If the target dialect cannot express
                part of the tree.  No partial output is returned.
        """
        ...


@runtime_checkable
class SqlDialectDetector(Protocol):
    """Detect the source dialect of SQL text by trial parsing."""

    def detect(self, sql: str) -> DetectionResult:
        """Try each auto-detect candidate in order; first success wins.

        Raises:
            AggregateParseError: Every candidate failed.  Carries one
                failure per candidate, in order.
            UnsupportedEngineError: The candidate list is empty.
        """
        ...


@runtime_checkable
class SqlTranslator(Protocol):
    """Translate SQL text from one engine's syntax to another's."""

    def translate(
        self,
        sql: str,
        source: EngineType,
        target: EngineType,
        *,
        rendering: RenderingProfile | None = None,
    ) -> TranslationResult:
        """Parse (or detect, when *source* is ``AUTO``) and re-render.

        *rendering* replaces the target's registered rendering profile for
        this call only.
        """
        ...


# ---------------------------------------------------------------------------
# Composite Toolkit Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlToolkit(Protocol):
    """Composite protocol exposing all SQL capabilities.

    Obtained via :func:`get_sql_toolkit`.  Each property returns an
    implementation of the corresponding capability protocol.
    """

    @property
    def registry(self) -> DialectRegistry:
        ...

    @property
    def parser(self) -> SqlParser:
        ...

    @property
    def renderer(self) -> SqlRenderer:
        ...

    @property
    def detector(self) -> SqlDialectDetector:
        ...

    @property
    def translator(self) -> SqlTranslator:
        ...
