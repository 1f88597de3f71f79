"""Statement classification helpers.

This is a line-oriented heuristic, not a SQL parser:

- A statement that is entirely `SET <key> = <value>` (optional trailing `;`)
  is a property directive and never reaches the job service.
- Otherwise the first line that is neither blank nor a `--`/`#` comment decides:
  a leading `SELECT` makes it a query, anything else an update.
- A statement with no such line is an update.

Known limitations: `INSERT ... SELECT` is an update (correct), while queries
that open with `WITH` or `(` are classified as updates. A `SET` whose key or
value spans several lines is not a directive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

_COMMENT_LINE = re.compile(r"^\s*(--|#)")
_QUERY_LINE = re.compile(r"^\s*SELECT", re.IGNORECASE)
_PROPERTY_DIRECTIVE = re.compile(r"SET\s+(?P<key>[^=\n]+)=(?P<value>.*)", re.IGNORECASE)


class StatementKind(StrEnum):
    """Job-producing statement kinds."""

    QUERY = "QUERY"
    UPDATE = "UPDATE"


@dataclass(slots=True, frozen=True)
class PropertyDirective:
    """A session property assignment parsed from `SET key = value`."""

    key: str
    value: str


def parse_property_directive(sql: str) -> PropertyDirective | None:
    """Return the directive when the whole statement is a `SET` clause."""

    text = sql.strip()
    if text.endswith(";"):
        text = text[:-1].rstrip()

    match = _PROPERTY_DIRECTIVE.fullmatch(text)
    if match is None:
        return None

    key = match.group("key").strip()
    if not key:
        return None
    return PropertyDirective(key=key, value=match.group("value").strip())


def is_query(sql: str) -> bool:
    """Return whether the first substantive line starts with SELECT."""

    for line in sql.splitlines():
        if _COMMENT_LINE.match(line) or not line.strip():
            continue
        return _QUERY_LINE.match(line) is not None
    return False


def classify(sql: str) -> PropertyDirective | StatementKind:
    """Classify a statement as a property directive, a query or an update."""

    directive = parse_property_directive(sql)
    if directive is not None:
        return directive
    if is_query(sql):
        return StatementKind.QUERY
    return StatementKind.UPDATE


__all__ = [
    "PropertyDirective",
    "StatementKind",
    "classify",
    "is_query",
    "parse_property_directive",
]
