"""Unit tests for shift_engine.translator."""

from __future__ import annotations

import pytest
from shift_engine.sql_toolkit import (
    AggregateParseError,
    EngineType,
    LineFolding,
    SqlNodeKind,
    SqlParseError,
    UnsupportedEngineError,
    get_sql_toolkit,
    reset_toolkit,
)
from shift_engine.translator import ParsedStatement, parse_sql, render_sql, translate_sql


@pytest.fixture(autouse=True)
def _fresh_toolkit():
    reset_toolkit()
    yield
    reset_toolkit()


# ---------------------------------------------------------------------------
# parse_sql
# ---------------------------------------------------------------------------


class TestParseSql:
    def test_named_engine(self):
        parsed = parse_sql("select c1 from emps where `id`=1", "hive")
        assert parsed.engine == EngineType.HIVE
        assert parsed.detected is False
        assert parsed.node.kind == SqlNodeKind.SELECT

    def test_engine_name_case_insensitive(self):
        assert parse_sql("SELECT 1", "Spark").engine == EngineType.SPARK

    def test_auto_is_default(self):
        parsed = parse_sql("SELECT 1")
        assert parsed.detected is True
        assert parsed.engine == EngineType.PRESTO

    def test_unknown_engine(self):
        with pytest.raises(UnsupportedEngineError, match="sybase"):
            parse_sql("SELECT 1", "sybase")

    def test_named_engine_failure(self):
        with pytest.raises(SqlParseError) as excinfo:
            parse_sql("SELECT * FROM emps WHERE (id = 1", EngineType.SPARK)
        assert excinfo.value.failure.engine == EngineType.SPARK

    def test_auto_failure(self):
        with pytest.raises(AggregateParseError) as excinfo:
            parse_sql("SELECT * FROM emps WHERE (id = 1")
        assert len(excinfo.value.failures) == 3


# ---------------------------------------------------------------------------
# render_sql
# ---------------------------------------------------------------------------


class TestRenderSql:
    def test_render_parsed_statement(self):
        parsed = parse_sql("select * from emps where id=1", "generic")
        assert render_sql(parsed, "oracle") == "SELECT * FROM emps WHERE (id = 1)"

    def test_render_bare_node(self):
        parsed = parse_sql("select * from emps where id=1", "generic")
        assert render_sql(parsed.node, EngineType.GENERIC) == "SELECT * FROM emps WHERE (id = 1)"

    def test_profile_override(self):
        parsed = parse_sql("select * from emps where id=1", "generic")
        profile = get_sql_toolkit().registry.rendering_profile(EngineType.GENERIC).derive(keywords_lower_case=True)
        assert render_sql(parsed, "generic", profile=profile) == "select * from emps where (id = 1)"

    def test_auto_target_rejected(self):
        parsed = parse_sql("SELECT 1", "generic")
        with pytest.raises(UnsupportedEngineError):
            render_sql(parsed, EngineType.AUTO)


# ---------------------------------------------------------------------------
# translate_sql
# ---------------------------------------------------------------------------


class TestTranslateSql:
    def test_hive_to_presto(self):
        result = translate_sql("select c1 from emps where `id`=1", "hive", "presto")
        assert result.output_sql == "SELECT c1 FROM emps WHERE (id = 1)"
        assert result.source_engine == EngineType.HIVE
        assert result.target_engine == EngineType.PRESTO

    def test_auto_source_reports_detection(self):
        result = translate_sql("SELECT a FROM t", "auto", "oracle")
        assert result.detected is True
        assert result.source_engine == EngineType.PRESTO
        assert result.failed_candidates == ()

    def test_tall_profile(self):
        profile = get_sql_toolkit().registry.rendering_profile(EngineType.ORACLE).derive(
            line_folding=LineFolding.TALL, indentation=2
        )
        result = translate_sql("SELECT a, b FROM t", "generic", "oracle", profile=profile)
        assert "\n" in result.output_sql

    def test_target_checked_before_parse(self):
        with pytest.raises(UnsupportedEngineError):
            translate_sql("not sql at all (", "generic", "auto")


# ---------------------------------------------------------------------------
# ParsedStatement
# ---------------------------------------------------------------------------


class TestParsedStatement:
    def test_backtick_identifier_equals_bare(self):
        quoted = parse_sql("select c1 from emps where `id`=1", "hive")
        bare = parse_sql("select c1 from emps where id=1", "hive")
        assert quoted.same_structure(bare)

    def test_case_insensitive_by_default(self):
        upper = parse_sql("SELECT C1 FROM EMPS", "generic")
        lower = parse_sql("select c1 from emps", "generic")
        assert upper.same_structure(lower)
        assert upper.node != lower.node

    def test_is_frozen(self):
        parsed = parse_sql("SELECT 1", "generic")
        with pytest.raises(AttributeError):
            parsed.engine = EngineType.HIVE  # type: ignore[misc]

    def test_round_trip_through_render(self):
        original = parse_sql("SELECT a, b FROM t WHERE a > 1 AND b = 'x'", "spark")
        again = parse_sql(render_sql(original, "spark"), "spark")
        assert isinstance(again, ParsedStatement)
        assert original.same_structure(again)
