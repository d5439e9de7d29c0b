"""
Incident SELECT statements for the warehouse store.

Filter clauses come from a fixed (field, column) table with numbered placeholders
(:1, :2, ...); values only ever travel as bind parameters. Matching is the same as
core.filtering: exact, case-sensitive, absent field = unconstrained.
"""

import os
import re

from core.models import FilterPredicate

DEFAULT_TABLE = "incidents"

# predicate field -> table column
FILTER_COLUMNS = (
    ("district", "dst_name"),
    ("complaint", "complaint"),
    ("call_type", "call_type"),
)

SELECT_COLUMNS = (
    "id, datetime, complaint AS complaint, address, dst_name AS district, "
    "call_type AS call_type, ST_X(geom) AS lon, ST_Y(geom) AS lat"
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*){0,2}$")


def incidents_table() -> str:
    table = os.environ.get("SNOWFLAKE_INCIDENTS_TABLE", "").strip() or DEFAULT_TABLE
    if not _IDENTIFIER.match(table):
        raise ValueError(f"invalid table name: {table!r}")
    return table


def build_filter_query(predicate: FilterPredicate | None = None, table: str | None = None) -> tuple[str, list]:
    """(sql, params) selecting incidents that match every present predicate field."""
    table = table or incidents_table()
    if not _IDENTIFIER.match(table):
        raise ValueError(f"invalid table name: {table!r}")
    predicate = predicate or FilterPredicate()
    clauses = []
    params: list = []
    for field_name, column in FILTER_COLUMNS:
        value = getattr(predicate, field_name)
        if value:
            params.append(value)
            clauses.append(f"{column} = :{len(params)}")
    sql = f"SELECT {SELECT_COLUMNS} FROM {table}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    return sql, params
