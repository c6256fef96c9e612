"""Dialect profile registry.

Maps every :class:`EngineType` to the parsing and rendering rules that make
up its dialect.  The registry is built once (normally by the toolkit
factory) and never mutated afterwards, so it can be shared freely between
threads.

Adding an engine means adding one entry to ``_DEFAULT_ENTRIES``; nothing
else dispatches on the engine type.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ._types import (
    Casing,
    Conformance,
    EngineType,
    ParsingProfile,
    RenderingProfile,
    UnsupportedEngineError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    """Parsing and rendering profile for one engine."""

    engine: EngineType
    parsing: ParsingProfile
    rendering: RenderingProfile


# ---------------------------------------------------------------------------
# Default profiles
# ---------------------------------------------------------------------------


def _parsing(conformance: Conformance = Conformance.DEFAULT, grammar: str | None = None) -> ParsingProfile:
    return ParsingProfile(
        unquoted_casing=Casing.UNCHANGED,
        quoted_casing=Casing.UNCHANGED,
        case_sensitive=False,
        conformance=conformance,
        grammar=grammar,
    )


def _rendering(dialect: str) -> RenderingProfile:
    return RenderingProfile(
        always_parenthesize=True,
        indentation=0,
        keywords_lower_case=False,
        quote_all_identifiers=False,
        dialect=dialect,
    )


_DEFAULT_ENTRIES: tuple[RegistryEntry, ...] = (
    RegistryEntry(EngineType.GENERIC, _parsing(), _rendering("")),
    RegistryEntry(EngineType.MYSQL, _parsing(Conformance.MYSQL_5), _rendering("mysql")),
    RegistryEntry(EngineType.PRESTO, _parsing(Conformance.PRESTO), _rendering("presto")),
    RegistryEntry(EngineType.HIVE, _parsing(grammar="hive"), _rendering("hive")),
    # Tez executes HiveQL, so it shares Hive's rules.
    RegistryEntry(EngineType.TEZ, _parsing(grammar="hive"), _rendering("hive")),
    RegistryEntry(EngineType.SPARK, _parsing(grammar="spark"), _rendering("spark")),
    RegistryEntry(EngineType.ORACLE, _parsing(Conformance.ORACLE), _rendering("oracle")),
)

# Stricter grammars first so that a permissive one cannot mask a mismatch.
DEFAULT_AUTO_DETECT_CANDIDATES: tuple[EngineType, ...] = (
    EngineType.PRESTO,
    EngineType.HIVE,
    EngineType.SPARK,
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DialectRegistry:
    """Read-only lookup table from :class:`EngineType` to its profiles."""

    def __init__(
        self,
        entries: Iterable[RegistryEntry],
        auto_detect_candidates: Iterable[EngineType] = DEFAULT_AUTO_DETECT_CANDIDATES,
    ) -> None:
        table: dict[EngineType, RegistryEntry] = {}
        for entry in entries:
            if entry.engine is EngineType.AUTO:
                raise ValueError("EngineType.AUTO cannot have a registry entry")
            if entry.engine in table:
                raise ValueError(f"Duplicate registry entry for {entry.engine.value!r}")
            table[entry.engine] = entry

        candidates = tuple(auto_detect_candidates)
        for engine in candidates:
            if engine not in table:
                raise UnsupportedEngineError(engine, f"Auto-detect candidate {engine.value!r} is not registered")

        self._entries: Mapping[EngineType, RegistryEntry] = MappingProxyType(table)
        self._candidates = candidates

    def entry(self, engine: EngineType) -> RegistryEntry:
        """Return the registry entry for *engine*.

        Raises:
            UnsupportedEngineError: For ``AUTO`` or an unregistered engine.
        """
        found = self._entries.get(engine)
        if found is None:
            raise UnsupportedEngineError(engine)
        return found

    def parsing_profile(self, engine: EngineType) -> ParsingProfile:
        return self.entry(engine).parsing

    def rendering_profile(self, engine: EngineType) -> RenderingProfile:
        return self.entry(engine).rendering

    @property
    def auto_detect_candidates(self) -> tuple[EngineType, ...]:
        """Engines tried, in order, when the source engine is unknown."""
        return self._candidates

    def engines(self) -> tuple[EngineType, ...]:
        """Registered engines in declaration order."""
        return tuple(self._entries)

    def __contains__(self, engine: object) -> bool:
        return engine in self._entries


def build_default_registry(
    candidates: Iterable[EngineType | str] | None = None,
) -> DialectRegistry:
    """Build the standard registry.

    *candidates* overrides the auto-detect order (e.g. from configuration);
    an empty iterable is accepted and makes auto-detection fail fast.
    """
    if candidates is None:
        order = DEFAULT_AUTO_DETECT_CANDIDATES
    else:
        order = tuple(c if isinstance(c, EngineType) else EngineType.from_name(c) for c in candidates)
    logger.debug("Building dialect registry (auto-detect order: %s)", [e.value for e in order])
    return DialectRegistry(_DEFAULT_ENTRIES, order)
