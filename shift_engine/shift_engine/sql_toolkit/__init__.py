"""SQL Toolkit: dialect-aware SQL parsing, dialect detection and rendering.

Usage::

    from shift_engine.sql_toolkit import get_sql_toolkit, EngineType

    tk = get_sql_toolkit()
    hive = tk.registry.parsing_profile(EngineType.HIVE)
    node = tk.parser.parse("SELECT c1 FROM emps WHERE `id` = 1", hive)
    sql = tk.renderer.render(node, tk.registry.rendering_profile(EngineType.PRESTO))
    detected = tk.detector.detect("SELECT 1")
    result = tk.translator.translate(sql, EngineType.AUTO, EngineType.ORACLE)

The default implementation delegates to SQLGlot.  A different backend can be
swapped in via ``register_implementation()`` without touching consumer code.
"""

from ._factory import get_sql_toolkit, register_implementation, reset_toolkit
from ._protocols import (
    SqlDialectDetector,
    SqlParser,
    SqlRenderer,
    SqlToolkit,
    SqlTranslator,
)
from ._registry import (
    DEFAULT_AUTO_DETECT_CANDIDATES,
    DialectRegistry,
    RegistryEntry,
    build_default_registry,
)
from ._types import (
    AggregateParseError,
    Casing,
    Conformance,
    DetectionResult,
    EngineType,
    LineFolding,
    ParseFailure,
    ParseOutcome,
    ParsingProfile,
    RenderingProfile,
    SqlNode,
    SqlNodeKind,
    SqlNodeVisitor,
    SqlParseError,
    SqlToolkitError,
    TranslationResult,
    TreeDumper,
    UnsupportedConstructError,
    UnsupportedEngineError,
)

__all__ = [
    # Factory
    "get_sql_toolkit",
    "register_implementation",
    "reset_toolkit",
    # Protocols
    "SqlToolkit",
    "SqlParser",
    "SqlRenderer",
    "SqlDialectDetector",
    "SqlTranslator",
    # Registry
    "DEFAULT_AUTO_DETECT_CANDIDATES",
    "DialectRegistry",
    "RegistryEntry",
    "build_default_registry",
    # Types
    "EngineType",
    "Casing",
    "Conformance",
    "LineFolding",
    "ParsingProfile",
    "RenderingProfile",
    "SqlNodeKind",
    "SqlNode",
    "SqlNodeVisitor",
    "TreeDumper",
    "ParseFailure",
    "ParseOutcome",
    "DetectionResult",
    "TranslationResult",
    # Exceptions
    "SqlToolkitError",
    "SqlParseError",
    "AggregateParseError",
    "UnsupportedEngineError",
    "UnsupportedConstructError",
]
