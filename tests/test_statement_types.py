from __future__ import annotations

import pytest

from odps_dbapi.domain.statement_types import (
    PropertyDirective,
    StatementKind,
    classify,
    is_query,
    parse_property_directive,
)


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT 1",
        "  select * from t",
        "-- leading comment\nSELECT id FROM t",
        "# hash comment\n\n   Select name from t",
        "\n\n  SELECT\n  1",
    ],
)
def test_select_statements_are_queries(sql: str) -> None:
    assert is_query(sql) is True
    assert classify(sql) is StatementKind.QUERY


@pytest.mark.parametrize(
    "sql",
    [
        "INSERT INTO t SELECT * FROM s",
        "CREATE TABLE t (id BIGINT)",
        "",
        "   \n  ",
        "-- only a comment",
        "UPDATE t SET a = 1",
        "WITH x AS (SELECT 1) SELECT * FROM x",
    ],
)
def test_other_statements_are_updates(sql: str) -> None:
    assert is_query(sql) is False
    assert classify(sql) is StatementKind.UPDATE


def test_set_directive_is_parsed_with_trimmed_key_and_value() -> None:
    directive = parse_property_directive("  set odps.sql.allow.fullscan = true ;  ")

    assert directive == PropertyDirective(key="odps.sql.allow.fullscan", value="true")


def test_set_directive_value_keeps_extra_equals_signs() -> None:
    directive = parse_property_directive("SET odps.sql.hint=a=b")

    assert directive == PropertyDirective(key="odps.sql.hint", value="a=b")


def test_set_directive_value_may_be_empty() -> None:
    assert parse_property_directive("SET odps.x=") == PropertyDirective(key="odps.x", value="")


@pytest.mark.parametrize(
    "sql",
    [
        "SETTINGS=1",
        "SET =1",
        "SET odps.x",
        "SET odps.x=1\nSELECT 1",
        "SELECT a = b FROM t",
    ],
)
def test_non_directives_are_rejected(sql: str) -> None:
    assert parse_property_directive(sql) is None


def test_classify_prefers_directive_over_statement_kind() -> None:
    assert classify("SET odps.sql.x=1") == PropertyDirective(key="odps.sql.x", value="1")
