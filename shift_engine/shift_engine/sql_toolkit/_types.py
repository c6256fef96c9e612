"""SQL toolkit shared types.

Every type here is implementation-agnostic. Consumer code operates on these
types exclusively. The backing implementation (SQLGlot today) converts
to/from its native types internally.

ZERO dependency on any SQL parsing library.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Engines & dialect rule sets
# ---------------------------------------------------------------------------


class EngineType(str, enum.Enum):
    """Engines whose SQL surface syntax can be read or written.

    ``AUTO`` is a sentinel meaning "detect the source engine"; it never has a
    registry entry of its own.
    """

    AUTO = "auto"
    GENERIC = "generic"
    HIVE = "hive"
    SPARK = "spark"
    PRESTO = "presto"
    TEZ = "tez"
    MYSQL = "mysql"
    ORACLE = "oracle"

    @classmethod
    def from_name(cls, name: str) -> EngineType:
        """Resolve a user-supplied engine name (case-insensitive).

        Raises:
            UnsupportedEngineError: If *name* does not name a known engine.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise UnsupportedEngineError(name) from None


class Casing(str, enum.Enum):
    """Casing policy applied to identifiers."""

    UNCHANGED = "unchanged"
    UPPER = "upper"
    LOWER = "lower"

    def apply(self, text: str) -> str:
        if self is Casing.UPPER:
            return text.upper()
        if self is Casing.LOWER:
            return text.lower()
        return text


class Conformance(str, enum.Enum):
    """Named SQL rule sets.

    Each level decides which syntax extensions, reserved words and quote
    characters a grammar accepts.  ``grammar`` is the name of the grammar
    engine dialect implementing the rules.
    """

    DEFAULT = "default"
    MYSQL_5 = "mysql_5"
    PRESTO = "presto"
    ORACLE = "oracle"

    @property
    def grammar(self) -> str:
        return _CONFORMANCE_GRAMMARS[self]


_CONFORMANCE_GRAMMARS: dict[Conformance, str] = {
    Conformance.DEFAULT: "",
    Conformance.MYSQL_5: "mysql",
    Conformance.PRESTO: "presto",
    Conformance.ORACLE: "oracle",
}


class LineFolding(str, enum.Enum):
    """How multi-item clauses (SELECT / FROM / SET lists) are laid out."""

    FLAT = "flat"
    TALL = "tall"


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsingProfile:
    """Rules governing how SQL text is tokenized and validated.

    ``grammar`` overrides the grammar normally implied by ``conformance``
    for the few engines that need a dedicated grammar variant.
    """

    unquoted_casing: Casing = Casing.UNCHANGED
    quoted_casing: Casing = Casing.UNCHANGED
    case_sensitive: bool = False
    conformance: Conformance = Conformance.DEFAULT
    grammar: str | None = None

    @property
    def read_dialect(self) -> str:
        """Name of the grammar engine dialect used to read text."""
        if self.grammar is not None:
            return self.grammar
        return self.conformance.grammar


@dataclass(frozen=True, slots=True)
class RenderingProfile:
    """Rules governing how an AST becomes SQL text."""

    always_parenthesize: bool = True
    line_folding: LineFolding = LineFolding.FLAT
    indentation: int = 0
    keywords_lower_case: bool = False
    quote_all_identifiers: bool = False
    identifier_casing: Casing = Casing.UNCHANGED
    dialect: str = ""

    def derive(self, **changes: Any) -> RenderingProfile:
        """Return a copy with *changes* applied.  The original is untouched."""
        return dataclasses.replace(self, **changes)


# ---------------------------------------------------------------------------
# AST Node Types
# ---------------------------------------------------------------------------


class SqlNodeKind(str, enum.Enum):
    """Enumeration of SQL node types that consumer code needs to inspect.

    This is NOT a 1:1 mapping to any parser's internal types.  ``SqlNode.op``
    carries the precise grammar node type when finer detail is needed.
    """

    # Statement types
    SELECT = "select"
    UNION = "union"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"
    DROP = "drop"
    MERGE = "merge"
    COMMAND = "command"

    # Clause types
    WITH = "with"
    CTE = "cte"
    FROM = "from"
    JOIN = "join"
    WHERE = "where"
    GROUP = "group"
    HAVING = "having"
    ORDER = "order"
    LIMIT = "limit"

    # Expression types
    TABLE = "table"
    COLUMN = "column"
    STAR = "star"
    ALIAS = "alias"
    TABLE_ALIAS = "table_alias"
    SUBQUERY = "subquery"
    PREDICATE = "predicate"
    OPERATOR = "operator"
    FUNCTION = "function"
    AGG_FUNC = "agg_func"
    WINDOW = "window"
    IDENTIFIER = "identifier"
    LITERAL = "literal"

    # Catch-all
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# AST Wrapper
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SqlNode:
    """Read-only node of the dialect-neutral AST.

    ``kind`` is the coarse category, ``op`` the grammar node type (``"eq"``,
    ``"select"``, ...).  ``quoted`` records whether an identifier was quoted
    in the source text.  ``raw`` holds the implementation-specific object
    (e.g. ``sqlglot.exp.Expression``) used by the renderer.  ``quoted`` and
    ``raw`` are excluded from ``__eq__`` / ``__hash__`` so that two trees
    compare equal when their logical content matches.

    The tree never records which dialect produced it.
    """

    kind: SqlNodeKind
    op: str = ""
    name: str = ""
    alias: str = ""
    children: tuple[SqlNode, ...] = ()
    quoted: bool = field(default=False, compare=False)
    raw: Any = field(default=None, repr=False, compare=False, hash=False)

    # -- traversal helpers ---------------------------------------------------

    def find_all(self, kind: SqlNodeKind) -> list[SqlNode]:
        """Recursively find all descendant nodes of the given kind."""
        result: list[SqlNode] = []
        self._collect(kind, result)
        return result

    def _collect(self, kind: SqlNodeKind, acc: list[SqlNode]) -> None:
        for child in self.children:
            if child.kind == kind:
                acc.append(child)
            child._collect(kind, acc)

    def find(self, kind: SqlNodeKind) -> SqlNode | None:
        """Find the first descendant of *kind* (depth-first), or ``None``."""
        for child in self.children:
            if child.kind == kind:
                return child
            found = child.find(kind)
            if found is not None:
                return found
        return None

    def walk(self) -> list[SqlNode]:
        """Return a flat list of all nodes in the subtree (pre-order DFS)."""
        result: list[SqlNode] = []
        self._walk(result)
        return result

    def _walk(self, acc: list[SqlNode]) -> None:
        acc.append(self)
        for child in self.children:
            child._walk(acc)

    @property
    def descendant_count(self) -> int:
        """Total number of nodes in the subtree (including self)."""
        return 1 + sum(c.descendant_count for c in self.children)

    def accept(self, visitor: SqlNodeVisitor) -> Any:
        return visitor.visit(self)

    # -- comparison ----------------------------------------------------------

    def structurally_equal(self, other: SqlNode, *, case_sensitive: bool = False) -> bool:
        """Compare two trees node-by-node.

        Names and aliases are compared case-insensitively unless
        *case_sensitive* is set.  Quoting is ignored.
        """
        if self.kind != other.kind or self.op != other.op:
            return False
        if len(self.children) != len(other.children):
            return False
        if case_sensitive:
            if self.name != other.name or self.alias != other.alias:
                return False
        elif self.name.lower() != other.name.lower() or self.alias.lower() != other.alias.lower():
            return False
        return all(
            mine.structurally_equal(theirs, case_sensitive=case_sensitive)
            for mine, theirs in zip(self.children, other.children)
        )

    def dump(self, indent: int = 2) -> str:
        """Return an indented, human-readable rendering of the subtree."""
        dumper = TreeDumper(indent=indent)
        self.accept(dumper)
        return "\n".join(dumper.lines)


class SqlNodeVisitor:
    """Base class for visitor-style traversal of :class:`SqlNode` trees.

    ``visit`` dispatches to ``visit_<kind>`` (e.g. ``visit_select``) and
    falls back to :meth:`generic_visit`, which visits every child.
    """

    def visit(self, node: SqlNode) -> Any:
        method = getattr(self, f"visit_{node.kind.value}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: SqlNode) -> Any:
        for child in node.children:
            self.visit(child)
        return None


class TreeDumper(SqlNodeVisitor):
    """Collects one line per node, indented by depth."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent
        self.lines: list[str] = []
        self._depth = 0

    def generic_visit(self, node: SqlNode) -> None:
        label = node.kind.value
        if node.op and node.op != node.kind.value:
            label = f"{label}:{node.op}"
        if node.name:
            label = f"{label} {node.name!r}"
        if node.alias:
            label = f"{label} AS {node.alias!r}"
        self.lines.append(" " * (self._depth * self.indent) + label)
        self._depth += 1
        try:
            super().generic_visit(node)
        finally:
            self._depth -= 1


# ---------------------------------------------------------------------------
# Result Containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """Why one dialect rejected a piece of SQL text.

    ``line`` / ``column`` are 1-based and ``None`` when the grammar engine
    could not locate the problem.
    """

    engine: EngineType | None
    message: str
    line: int | None = None
    column: int | None = None
    offending_token: str | None = None

    def __str__(self) -> str:
        where = ""
        if self.line is not None:
            where = f" (line {self.line}, col {self.column})"
        token = f" near {self.offending_token!r}" if self.offending_token else ""
        engine = self.engine.value if self.engine is not None else "?"
        return f"[{engine}] {self.message}{where}{token}"


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Result of a single trial parse: exactly one of ``node`` / ``failure``."""

    engine: EngineType | None
    node: SqlNode | None = None
    failure: ParseFailure | None = None

    @property
    def ok(self) -> bool:
        return self.node is not None


@dataclass(frozen=True, slots=True)
class DetectionResult:
    """Result of auto-detecting the source engine.

    ``attempts`` lists every outcome tried, ending with the successful one.
    """

    node: SqlNode
    engine: EngineType
    attempts: tuple[ParseOutcome, ...] = ()


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Result of translating SQL between engines."""

    output_sql: str
    source_engine: EngineType
    target_engine: EngineType
    detected: bool = False
    failed_candidates: tuple[ParseFailure, ...] = ()


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SqlToolkitError(Exception):
    """Base exception for all sql_toolkit errors."""


class SqlParseError(SqlToolkitError):
    """SQL could not be parsed under one specific dialect."""

    def __init__(self, failure: ParseFailure) -> None:
        self.failure = failure
        super().__init__(str(failure))


class AggregateParseError(SqlToolkitError):
    """Auto-detection exhausted every candidate dialect.

    ``failures`` preserves each candidate's failure in the order tried.
    """

    def __init__(self, failures: tuple[ParseFailure, ...]) -> None:
        self.failures = failures
        engines = ", ".join(f.engine.value for f in failures if f.engine is not None)
        super().__init__(f"SQL did not parse under any candidate dialect ({engines})")


class UnsupportedEngineError(SqlToolkitError):
    """An engine identifier has no registry entry."""

    def __init__(self, engine: object, reason: str = "") -> None:
        self.engine = engine
        label = engine.value if isinstance(engine, EngineType) else str(engine)
        super().__init__(reason or f"Unsupported engine: {label!r}")


class UnsupportedConstructError(SqlToolkitError):
    """The target dialect cannot express a construct in the AST."""

    def __init__(self, message: str, *, dialect: str = "", construct: str = "", node_sql: str = "") -> None:
        self.dialect = dialect
        self.construct = construct
        self.node_sql = node_sql
        super().__init__(message)
