"""Unit tests for the SQLGlot-backed renderer."""

from __future__ import annotations

import pytest
from shift_engine.sql_toolkit import (
    Casing,
    EngineType,
    LineFolding,
    RenderingProfile,
    SqlNode,
    SqlNodeKind,
    UnsupportedConstructError,
    build_default_registry,
)
from shift_engine.sql_toolkit.impl.sqlglot_impl import SqlGlotParser, SqlGlotRenderer

_REGISTRY = build_default_registry()
_PARSER = SqlGlotParser()


def _parse(sql: str, engine: EngineType = EngineType.GENERIC) -> SqlNode:
    return _PARSER.parse(sql, _REGISTRY.parsing_profile(engine), engine)


def _profile(engine: EngineType, **changes) -> RenderingProfile:
    profile = _REGISTRY.rendering_profile(engine)
    return profile.derive(**changes) if changes else profile


@pytest.fixture()
def renderer() -> SqlGlotRenderer:
    return SqlGlotRenderer()


# ---------------------------------------------------------------------------
# Parenthesization
# ---------------------------------------------------------------------------


class TestParenthesize:
    def test_predicate_wrapped(self, renderer):
        sql = renderer.render(_parse("select * from emps where id=1"), _profile(EngineType.GENERIC))
        assert sql == "SELECT * FROM emps WHERE (id = 1)"

    def test_oracle_target(self, renderer):
        sql = renderer.render(_parse("select * from emps where id=1"), _profile(EngineType.ORACLE))
        assert sql == "SELECT * FROM emps WHERE (id = 1)"

    def test_nested_compounds_each_wrapped(self, renderer):
        sql = renderer.render(_parse("SELECT * FROM t WHERE a = 1 AND b = 2"), _profile(EngineType.GENERIC))
        assert "((a = 1) AND (b = 2))" in sql

    def test_existing_parentheses_not_doubled(self, renderer):
        sql = renderer.render(_parse("SELECT * FROM t WHERE (a = 1)"), _profile(EngineType.GENERIC))
        assert "((a = 1))" not in sql
        assert "(a = 1)" in sql

    def test_disabled(self, renderer):
        sql = renderer.render(
            _parse("SELECT * FROM t WHERE a = 1 AND b = 2"),
            _profile(EngineType.GENERIC, always_parenthesize=False),
        )
        assert sql == "SELECT * FROM t WHERE a = 1 AND b = 2"

    def test_update_assignments_stay_bare(self, renderer):
        sql = renderer.render(_parse("UPDATE t SET a = 1 WHERE b = 2"), _profile(EngineType.GENERIC))
        assert "SET a = 1" in sql
        assert "(b = 2)" in sql

    def test_partition_spec_stays_bare(self, renderer):
        node = _parse("INSERT OVERWRITE TABLE t PARTITION (ds='2020') SELECT a FROM s", EngineType.HIVE)
        sql = renderer.render(node, _profile(EngineType.HIVE))
        assert "PARTITION(ds = '2020')" in sql

    def test_idempotent(self, renderer):
        profile = _profile(EngineType.GENERIC)
        first = renderer.render(_parse("SELECT a FROM t WHERE a = 1 AND b > 2 OR NOT c < 3"), profile)
        second = renderer.render(_parse(first), profile)
        assert first == second

    def test_source_tree_not_modified(self, renderer):
        node = _parse("SELECT * FROM t WHERE a = 1")
        before = node.raw.sql()
        renderer.render(node, _profile(EngineType.GENERIC))
        assert node.raw.sql() == before


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


class TestQuoting:
    def test_backticks_dropped_when_not_needed(self, renderer):
        node = _parse("select c1 from emps where `id`=1", EngineType.HIVE)
        sql = renderer.render(node, _profile(EngineType.PRESTO))
        assert sql == "SELECT c1 FROM emps WHERE (id = 1)"
        assert "`" not in sql

    def test_quote_glyph_follows_target(self, renderer):
        node = _parse("select c1 from emps where `id`=1", EngineType.HIVE)
        hive = renderer.render(node, _profile(EngineType.HIVE, quote_all_identifiers=True))
        presto = renderer.render(node, _profile(EngineType.PRESTO, quote_all_identifiers=True))
        assert hive != presto
        assert "`c1`" in hive
        assert '"c1"' in presto
        assert hive.replace("`", '"') == presto

    def test_case_sensitive_identifier_keeps_quotes(self, renderer):
        sql = renderer.render(_parse('SELECT "Id" FROM t'), _profile(EngineType.GENERIC))
        assert '"Id"' in sql

    def test_keyword_identifier_keeps_quotes(self, renderer):
        sql = renderer.render(_parse('SELECT "select" FROM t'), _profile(EngineType.GENERIC))
        assert '"select"' in sql

    def test_non_word_identifier_keeps_quotes(self, renderer):
        sql = renderer.render(_parse('SELECT "a b" FROM t'), _profile(EngineType.GENERIC))
        assert '"a b"' in sql


# ---------------------------------------------------------------------------
# Keywords, casing and folding
# ---------------------------------------------------------------------------


class TestLayout:
    def test_lowercase_keywords(self, renderer):
        sql = renderer.render(
            _parse("select * from emps where id=1"),
            _profile(EngineType.GENERIC, keywords_lower_case=True),
        )
        assert sql == "select * from emps where (id = 1)"

    def test_lowercase_keywords_leave_literals(self, renderer):
        sql = renderer.render(
            _parse("SELECT a FROM t WHERE b = 'SELECT'"),
            _profile(EngineType.GENERIC, keywords_lower_case=True),
        )
        assert sql.startswith("select a from t where")
        assert "'SELECT'" in sql

    def test_identifier_casing(self, renderer):
        sql = renderer.render(
            _parse("SELECT col FROM tbl"),
            _profile(EngineType.GENERIC, identifier_casing=Casing.UPPER),
        )
        assert sql == "SELECT COL FROM TBL"

    def test_flat_is_single_line(self, renderer):
        sql = renderer.render(_parse("SELECT a, b FROM t WHERE a = 1"), _profile(EngineType.SPARK))
        assert "\n" not in sql

    def test_tall_folds_lines(self, renderer):
        sql = renderer.render(
            _parse("SELECT a, b FROM t WHERE a = 1"),
            _profile(EngineType.GENERIC, line_folding=LineFolding.TALL, indentation=4),
        )
        assert "\n" in sql
        assert "    a" in sql

    def test_tall_keeps_wrapped_predicate_on_one_line(self, renderer):
        sql = renderer.render(
            _parse("select * from emps where id=1"),
            _profile(EngineType.GENERIC, line_folding=LineFolding.TALL),
        )
        assert "(id = 1)" in sql
        assert "(\n" not in sql

    def test_tall_subquery_still_folds(self, renderer):
        sql = renderer.render(
            _parse("SELECT * FROM (SELECT a, b FROM t) AS s"),
            _profile(EngineType.GENERIC, line_folding=LineFolding.TALL),
        )
        assert "(\n" in sql

    def test_no_statement_terminator(self, renderer):
        sql = renderer.render(_parse("SELECT 1;"), _profile(EngineType.MYSQL))
        assert not sql.rstrip().endswith(";")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestRenderErrors:
    def test_node_without_raw(self, renderer):
        with pytest.raises(ValueError):
            renderer.render(SqlNode(kind=SqlNodeKind.SELECT), _profile(EngineType.GENERIC))

    def test_foreign_raw_object(self, renderer):
        with pytest.raises(TypeError, match="str"):
            renderer.render(SqlNode(kind=SqlNodeKind.SELECT, raw="SELECT 1"), _profile(EngineType.GENERIC))

    def test_locking_read_unsupported_by_hive(self, renderer):
        node = _parse("SELECT a FROM t FOR UPDATE")
        with pytest.raises(UnsupportedConstructError) as excinfo:
            renderer.render(node, _profile(EngineType.HIVE))
        assert excinfo.value.dialect == "hive"
        assert excinfo.value.construct
        assert "SELECT a FROM t" not in excinfo.value.node_sql

    @pytest.mark.parametrize("clause", ["DISTRIBUTE BY", "SORT BY", "CLUSTER BY"])
    @pytest.mark.parametrize("target", [EngineType.PRESTO, EngineType.ORACLE])
    def test_hive_only_clause_not_dropped(self, renderer, clause, target):
        node = _parse(f"SELECT a FROM t {clause} a", EngineType.SPARK)
        with pytest.raises(UnsupportedConstructError) as excinfo:
            renderer.render(node, _profile(target))
        assert excinfo.value.dialect == _profile(target).dialect
        assert excinfo.value.construct == clause.split()[0].lower()
        assert excinfo.value.node_sql.upper().startswith(clause)

    @pytest.mark.parametrize("clause", ["DISTRIBUTE BY", "SORT BY", "CLUSTER BY"])
    def test_hive_only_clause_kept_for_hive(self, renderer, clause):
        sql = renderer.render(_parse(f"SELECT a FROM t {clause} a", EngineType.SPARK), _profile(EngineType.HIVE))
        assert sql == f"SELECT a FROM t {clause} a"
