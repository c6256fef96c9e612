"""SQLGlot-backed implementation of the SQL toolkit protocols.

This is the ONLY file in the entire codebase that imports ``sqlglot`` directly.
All consumer code goes through the protocol interfaces defined in
:mod:`shift_engine.sql_toolkit._protocols`.

SQLGlot is the grammar engine: its dialect classes tokenize and parse text
and its generator emits text.  This module configures it from the profiles
held in the :class:`DialectRegistry` and translates its trees into
:class:`SqlNode` trees.

Supports SQLGlot v25 and later.
"""

from __future__ import annotations

import functools
import logging
import re
from collections import Counter

from sqlglot import exp
from sqlglot.dialects.dialect import Dialect as GlotDialect
from sqlglot.errors import ErrorLevel, ParseError, SqlglotError, UnsupportedError
from sqlglot.generator import Generator
from sqlglot.tokens import TokenType

from .._registry import DialectRegistry, build_default_registry
from .._types import (
    AggregateParseError,
    Casing,
    DetectionResult,
    EngineType,
    LineFolding,
    ParseFailure,
    ParseOutcome,
    ParsingProfile,
    RenderingProfile,
    SqlNode,
    SqlNodeKind,
    SqlParseError,
    TranslationResult,
    UnsupportedConstructError,
    UnsupportedEngineError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal: SQLGlot expression → SqlNodeKind mapping
# ---------------------------------------------------------------------------

# Maps sqlglot expression class names to our SqlNodeKind enum.
# This is the single point where sqlglot types are translated into our
# implementation-agnostic types.
_EXP_KIND_MAP: dict[str, SqlNodeKind] = {
    "Select": SqlNodeKind.SELECT,
    "Union": SqlNodeKind.UNION,
    "Intersect": SqlNodeKind.UNION,
    "Except": SqlNodeKind.UNION,
    "Insert": SqlNodeKind.INSERT,
    "Update": SqlNodeKind.UPDATE,
    "Delete": SqlNodeKind.DELETE,
    "Create": SqlNodeKind.CREATE,
    "Drop": SqlNodeKind.DROP,
    "Merge": SqlNodeKind.MERGE,
    "Command": SqlNodeKind.COMMAND,
    "With": SqlNodeKind.WITH,
    "CTE": SqlNodeKind.CTE,
    "From": SqlNodeKind.FROM,
    "Join": SqlNodeKind.JOIN,
    "Where": SqlNodeKind.WHERE,
    "Group": SqlNodeKind.GROUP,
    "Having": SqlNodeKind.HAVING,
    "Order": SqlNodeKind.ORDER,
    "Limit": SqlNodeKind.LIMIT,
    "Table": SqlNodeKind.TABLE,
    "Column": SqlNodeKind.COLUMN,
    "Star": SqlNodeKind.STAR,
    "Alias": SqlNodeKind.ALIAS,
    "TableAlias": SqlNodeKind.TABLE_ALIAS,
    "Subquery": SqlNodeKind.SUBQUERY,
    "Window": SqlNodeKind.WINDOW,
    "Identifier": SqlNodeKind.IDENTIFIER,
    "Literal": SqlNodeKind.LITERAL,
}

# Compound expressions wrapped by ``always_parenthesize``.
_COMPOUND_TYPES: tuple[type[exp.Expression], ...] = (exp.Binary, exp.Predicate, exp.Not)

# Compound-looking nodes that are not standalone expressions (member access,
# named arguments, ANY/ALL/EXISTS) or are already grouping syntax.
_NEVER_WRAPPED: tuple[type[exp.Expression], ...] = (
    exp.Dot,
    exp.Kwarg,
    exp.PropertyEQ,
    exp.SubqueryPredicate,
    exp.Paren,
)

# Parents whose direct children must stay bare: SET assignments, the pattern
# operand of ``... ESCAPE`` and the ``col = const`` pairs of a partition spec.
_BARE_CHILD_PARENTS: tuple[type[exp.Expression], ...] = (
    exp.Update,
    exp.SetItem,
    exp.OnConflict,
    exp.Escape,
    exp.Partition,
)

# Clauses hanging off a query node that must survive rendering.  QUALIFY and
# LATERAL VIEW are legitimately rewritten (filtered subquery, CROSS JOIN
# UNNEST) for targets that lack them.
_QUERY_MODIFIER_KEYS: tuple[str, ...] = tuple(
    key for key in exp.QUERY_MODIFIERS if key not in ("qualify", "laterals")
)

# Token types whose text is data, never a keyword.
_VERBATIM_TOKENS: frozenset[TokenType] = frozenset(
    getattr(TokenType, name)
    for name in (
        "VAR",
        "IDENTIFIER",
        "STRING",
        "NUMBER",
        "NATIONAL_STRING",
        "BIT_STRING",
        "HEX_STRING",
        "BYTE_STRING",
        "RAW_STRING",
        "HEREDOC_STRING",
        "UNICODE_STRING",
        "PARAMETER",
        "PLACEHOLDER",
    )
    if hasattr(TokenType, name)
)

_PLAIN_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Deeper trees are truncated to UNKNOWN nodes when converted.
_MAX_DEPTH = 100


# ---------------------------------------------------------------------------
# Internal: dialect & AST conversion helpers
# ---------------------------------------------------------------------------


def _glot_dialect(name: str) -> GlotDialect:
    """Return the sqlglot dialect instance for a dialect tag ("" = ANSI)."""
    return GlotDialect.get_or_raise(name)


@functools.lru_cache(maxsize=None)
def _inline_paren_generator(base: type[Generator]) -> type[Generator]:
    """Subclass *base* so wrapped predicates stay on one line in pretty mode.

    Parenthesised subqueries keep the dialect's own multi-line layout.
    """

    class _InlineParenGenerator(base):  # type: ignore[valid-type,misc]
        def paren_sql(self, expression: exp.Paren) -> str:
            if isinstance(expression.this, exp.Query):
                return super().paren_sql(expression)
            return f"({self.sql(expression, 'this')})"

    return _InlineParenGenerator


def _query_modifiers(trees: list[exp.Expression | None]) -> tuple[Counter[str], dict[str, exp.Expression]]:
    """Count the query-modifier clauses in *trees* and keep the first of each."""
    counts: Counter[str] = Counter()
    first: dict[str, exp.Expression] = {}
    for tree in trees:
        if tree is None:
            continue
        for query in tree.find_all(exp.Query):
            for key in _QUERY_MODIFIER_KEYS:
                value = query.args.get(key)
                if not value:
                    continue
                counts[key] += 1
                first.setdefault(key, value[0] if isinstance(value, list) else value)
    return counts, first


def _classify_node(node: exp.Expression) -> SqlNodeKind:
    """Map a sqlglot expression to a :class:`SqlNodeKind`."""
    kind = _EXP_KIND_MAP.get(type(node).__name__)
    if kind is not None:
        return kind

    if isinstance(node, exp.AggFunc):
        return SqlNodeKind.AGG_FUNC
    if isinstance(node, (exp.Predicate, exp.Connector, exp.Not)):
        return SqlNodeKind.PREDICATE
    if isinstance(node, exp.Binary):
        return SqlNodeKind.OPERATOR
    if isinstance(node, exp.Func):
        return SqlNodeKind.FUNCTION

    return SqlNodeKind.UNKNOWN


def _node_name(node: exp.Expression) -> str:
    """Extract a meaningful name from a sqlglot expression node."""
    if isinstance(node, (exp.Identifier, exp.Literal)):
        return str(node.this)
    if isinstance(node, exp.Star):
        return "*"
    if isinstance(node, exp.CTE):
        return node.alias or ""
    if isinstance(node, exp.Alias):
        return node.alias or ""
    if isinstance(node, exp.Anonymous):
        return str(node.name or "")
    if isinstance(node, exp.Func):
        return type(node).sql_name()
    name = node.name
    return str(name) if name else ""


def _node_alias(node: exp.Expression) -> str:
    """Extract the alias from a sqlglot expression, if present."""
    if isinstance(node, (exp.Alias, exp.CTE)):
        return ""
    alias_node = node.args.get("alias")
    if isinstance(alias_node, exp.Expression):
        return alias_node.name or ""
    return ""


def _to_sql_node(node: exp.Expression, *, depth: int = 0) -> SqlNode:
    """Recursively convert a sqlglot AST into a :class:`SqlNode` tree.

    ``Paren`` nodes are collapsed into their content: the grouping is already
    encoded in the tree shape.
    """
    while isinstance(node, exp.Paren):
        node = node.this

    if depth > _MAX_DEPTH:
        return SqlNode(kind=SqlNodeKind.UNKNOWN, op=node.key, raw=node)

    children = tuple(_to_sql_node(child, depth=depth + 1) for child in node.iter_expressions())
    return SqlNode(
        kind=_classify_node(node),
        op=node.key,
        name=_node_name(node),
        alias=_node_alias(node),
        children=children,
        quoted=isinstance(node, exp.Identifier) and bool(node.args.get("quoted")),
        raw=node,
    )


def _apply_parse_casing(ast: exp.Expression, profile: ParsingProfile) -> None:
    """Re-case identifiers in place according to *profile*."""
    if profile.unquoted_casing is Casing.UNCHANGED and profile.quoted_casing is Casing.UNCHANGED:
        return
    for ident in ast.find_all(exp.Identifier):
        if not isinstance(ident.this, str):
            continue
        casing = profile.quoted_casing if ident.args.get("quoted") else profile.unquoted_casing
        ident.set("this", casing.apply(ident.this))


def _failure_from_error(exc: Exception, engine: EngineType | None) -> ParseFailure:
    """Convert a sqlglot error into a :class:`ParseFailure`."""
    errors = getattr(exc, "errors", None)
    if isinstance(exc, ParseError) and errors:
        first = errors[0]
        return ParseFailure(
            engine=engine,
            message=first.get("description") or str(exc),
            line=first.get("line"),
            column=first.get("col"),
            offending_token=first.get("highlight") or None,
        )
    return ParseFailure(engine=engine, message=str(exc))


# ---------------------------------------------------------------------------
# SqlGlotParser
# ---------------------------------------------------------------------------


class SqlGlotParser:
    """SQLGlot-backed :class:`SqlParser` implementation.

    Stateless: one instance may serve any number of calls.
    """

    def parse(self, sql: str, profile: ParsingProfile, engine: EngineType | None = None) -> SqlNode:
        """Parse a single SQL statement."""
        outcome = self.try_parse(sql, profile, engine)
        if outcome.node is not None:
            return outcome.node
        if outcome.failure is None:
            raise SqlParseError(ParseFailure(engine=engine, message="Parser returned neither a tree nor a failure"))
        raise SqlParseError(outcome.failure)

    def try_parse(self, sql: str, profile: ParsingProfile, engine: EngineType | None = None) -> ParseOutcome:
        """Parse a single SQL statement, reporting failure as a value."""
        dialect = _glot_dialect(profile.read_dialect)
        try:
            parsed = dialect.parse(sql, error_level=ErrorLevel.RAISE)
        except SqlglotError as exc:
            return ParseOutcome(engine=engine, failure=_failure_from_error(exc, engine))
        except RecursionError:
            return ParseOutcome(
                engine=engine,
                failure=ParseFailure(engine=engine, message="Statement is nested too deeply"),
            )

        statements = [stmt for stmt in parsed if stmt is not None]
        if len(statements) != 1:
            message = (
                "No SQL statement found"
                if not statements
                else f"Expected exactly 1 statement, got {len(statements)}"
            )
            return ParseOutcome(engine=engine, failure=ParseFailure(engine=engine, message=message))

        ast = statements[0]
        _apply_parse_casing(ast, profile)
        return ParseOutcome(engine=engine, node=_to_sql_node(ast))


# ---------------------------------------------------------------------------
# SqlGlotDialectDetector
# ---------------------------------------------------------------------------


class SqlGlotDialectDetector:
    """Trial-parse coordinator: detects the source dialect of SQL text.

    Candidates come from the registry in its fixed order.  The first
    candidate that accepts the text wins; the rest are not tried.
    """

    def __init__(self, registry: DialectRegistry, parser: SqlGlotParser) -> None:
        self._registry = registry
        self._parser = parser

    def detect(self, sql: str) -> DetectionResult:
        """Return the first candidate parse that succeeds."""
        candidates = self._registry.auto_detect_candidates
        if not candidates:
            raise UnsupportedEngineError(EngineType.AUTO, "No auto-detect candidates are configured")

        attempts: list[ParseOutcome] = []
        for engine in candidates:
            outcome = self._parser.try_parse(sql, self._registry.parsing_profile(engine), engine)
            attempts.append(outcome)
            if outcome.node is not None:
                logger.debug(
                    "Auto-detected source engine %s after %d attempt(s)",
                    engine.value,
                    len(attempts),
                    extra={"engine": engine.value},
                )
                return DetectionResult(node=outcome.node, engine=engine, attempts=tuple(attempts))
            logger.debug(
                "Candidate engine %s rejected SQL: %s",
                engine.value,
                outcome.failure,
                extra={"engine": engine.value},
            )

        raise AggregateParseError(tuple(o.failure for o in attempts if o.failure is not None))


# ---------------------------------------------------------------------------
# SqlGlotRenderer
# ---------------------------------------------------------------------------


class SqlGlotRenderer:
    """SQLGlot-backed :class:`SqlRenderer` implementation.

    Every profile-driven rewrite happens on a private copy of the tree; the
    node passed in is never modified.
    """

    def render(self, node: SqlNode, profile: RenderingProfile) -> str:
        """Render an AST node to a SQL string."""
        raw = node.raw
        if raw is None:
            raise ValueError("SqlNode has no raw expression attached")

        if not isinstance(raw, exp.Expression):
            raise TypeError(f"Expected sqlglot Expression, got {type(raw).__name__}")

        dialect = _glot_dialect(profile.dialect)
        tree = raw.copy()

        self._apply_identifier_casing(tree, profile.identifier_casing)
        if not profile.quote_all_identifiers:
            self._unquote_plain_identifiers(tree, dialect)
        if profile.always_parenthesize:
            tree = self._parenthesize(tree)

        expected, clauses = _query_modifiers([tree])
        tall = profile.line_folding is LineFolding.TALL
        generator = _inline_paren_generator(dialect.generator_class)(
            dialect=dialect,
            pretty=tall,
            pad=profile.indentation,
            indent=profile.indentation,
            identify=profile.quote_all_identifiers,
            unsupported_level=ErrorLevel.RAISE,
        )
        try:
            sql = generator.generate(tree, copy=False)
        except UnsupportedError as exc:
            raise UnsupportedConstructError(
                f"{profile.dialect or 'ansi'} cannot express this statement: {exc}",
                dialect=profile.dialect,
                construct=str(exc),
            ) from exc

        self._check_clauses_kept(sql, dialect, profile.dialect, expected, clauses)

        if profile.keywords_lower_case:
            sql = self._lower_keywords(sql, dialect)
        return sql

    @staticmethod
    def _check_clauses_kept(
        sql: str,
        dialect: GlotDialect,
        dialect_name: str,
        expected: Counter[str],
        clauses: dict[str, exp.Expression],
    ) -> None:
        """Re-read *sql* under the target and fail if a query clause was dropped.

        Some generators silently omit clauses they cannot express (Hive's
        DISTRIBUTE BY under Presto, for example) instead of reporting them.
        """
        label = dialect_name or "ansi"
        try:
            rendered = dialect.parse(sql, error_level=ErrorLevel.RAISE)
        except SqlglotError as exc:
            raise UnsupportedConstructError(
                f"{label} rendering does not read back under {label}: {exc}",
                dialect=dialect_name,
            ) from exc

        found, _ = _query_modifiers(rendered)
        for key in _QUERY_MODIFIER_KEYS:
            if found[key] < expected[key]:
                clause = clauses[key]
                raise UnsupportedConstructError(
                    f"{label} cannot express the '{key}' clause: {clause.sql()}",
                    dialect=dialect_name,
                    construct=key,
                    node_sql=clause.sql(),
                )

    @staticmethod
    def _apply_identifier_casing(tree: exp.Expression, casing: Casing) -> None:
        if casing is Casing.UNCHANGED:
            return
        for ident in tree.find_all(exp.Identifier):
            if not ident.args.get("quoted") and isinstance(ident.this, str):
                ident.set("this", casing.apply(ident.this))

    @staticmethod
    def _unquote_plain_identifiers(tree: exp.Expression, dialect: GlotDialect) -> None:
        """Drop quotes that the target dialect does not need.

        An identifier keeps its quotes when it is not a plain word, collides
        with a keyword, or would change meaning under the target's casing
        rules.
        """
        keywords = dialect.tokenizer_class.KEYWORDS
        for ident in tree.find_all(exp.Identifier):
            text = ident.this
            if not ident.args.get("quoted") or not isinstance(text, str):
                continue
            if not _PLAIN_IDENTIFIER_RE.match(text):
                continue
            if text.upper() in keywords or dialect.case_sensitive(text):
                continue
            ident.set("quoted", False)

    @staticmethod
    def _parenthesize(tree: exp.Expression) -> exp.Expression:
        """Wrap every compound expression that is not already wrapped.

        Works deepest-first so that a wrapped parent copies its already
        wrapped children.
        """
        targets = [
            node
            for node in tree.walk(bfs=True)
            if node.parent is not None
            and isinstance(node, _COMPOUND_TYPES)
            and not isinstance(node, _NEVER_WRAPPED)
            and not isinstance(node.parent, exp.Paren)
            and not isinstance(node.parent, _BARE_CHILD_PARENTS)
        ]
        for node in reversed(targets):
            node.replace(exp.Paren(this=node.copy()))
        return tree

    @staticmethod
    def _lower_keywords(sql: str, dialect: GlotDialect) -> str:
        """Lower-case keyword tokens, leaving identifiers and literals alone."""
        keywords = dialect.tokenizer_class.KEYWORDS
        pieces: list[str] = []
        cursor = 0
        for token in dialect.tokenize(sql):
            if token.token_type in _VERBATIM_TOKENS or token.text.upper() not in keywords:
                continue
            pieces.append(sql[cursor : token.start])
            pieces.append(sql[token.start : token.end + 1].lower())
            cursor = token.end + 1
        pieces.append(sql[cursor:])
        return "".join(pieces)


# ---------------------------------------------------------------------------
# SqlGlotTranslator
# ---------------------------------------------------------------------------


class SqlGlotTranslator:
    """Parse-or-detect followed by render."""

    def __init__(
        self,
        registry: DialectRegistry,
        parser: SqlGlotParser,
        detector: SqlGlotDialectDetector,
        renderer: SqlGlotRenderer,
    ) -> None:
        self._registry = registry
        self._parser = parser
        self._detector = detector
        self._renderer = renderer

    def translate(
        self,
        sql: str,
        source: EngineType,
        target: EngineType,
        *,
        rendering: RenderingProfile | None = None,
    ) -> TranslationResult:
        """Translate SQL from *source* syntax to *target* syntax."""
        # Resolve the target first so a bad target fails before any parsing.
        profile = self._registry.rendering_profile(target)
        if rendering is not None:
            profile = rendering

        failed: tuple[ParseFailure, ...] = ()
        if source is EngineType.AUTO:
            detection = self._detector.detect(sql)
            node = detection.node
            source_engine = detection.engine
            failed = tuple(a.failure for a in detection.attempts if a.failure is not None)
        else:
            node = self._parser.parse(sql, self._registry.parsing_profile(source), source)
            source_engine = source

        output_sql = self._renderer.render(node, profile)
        logger.debug("Translated SQL from %s to %s", source_engine.value, target.value)
        return TranslationResult(
            output_sql=output_sql,
            source_engine=source_engine,
            target_engine=target,
            detected=source is EngineType.AUTO,
            failed_candidates=failed,
        )


# ---------------------------------------------------------------------------
# Composite Toolkit
# ---------------------------------------------------------------------------


class SqlGlotToolkit:
    """Composite :class:`SqlToolkit` backed by SQLGlot.

    Instantiates all individual protocol implementations around one shared
    registry and exposes them as properties.  This is the default
    implementation returned by :func:`get_sql_toolkit`.
    """

    def __init__(self, registry: DialectRegistry | None = None) -> None:
        self._registry = registry if registry is not None else build_default_registry()
        self._parser = SqlGlotParser()
        self._renderer = SqlGlotRenderer()
        self._detector = SqlGlotDialectDetector(self._registry, self._parser)
        self._translator = SqlGlotTranslator(self._registry, self._parser, self._detector, self._renderer)

    @property
    def registry(self) -> DialectRegistry:
        return self._registry

    @property
    def parser(self) -> SqlGlotParser:
        return self._parser

    @property
    def renderer(self) -> SqlGlotRenderer:
        return self._renderer

    @property
    def detector(self) -> SqlGlotDialectDetector:
        return self._detector

    @property
    def translator(self) -> SqlGlotTranslator:
        return self._translator
