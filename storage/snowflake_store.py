"""
Optional Snowflake incident store.

When SNOWFLAKE_ACCOUNT, SNOWFLAKE_USER, SNOWFLAKE_PASSWORD are set (plus optional
SNOWFLAKE_WAREHOUSE, SNOWFLAKE_DATABASE, SNOWFLAKE_SCHEMA, SNOWFLAKE_ROLE), incidents
are read from SNOWFLAKE_INCIDENTS_TABLE (default "incidents"):

    id, datetime, complaint, address, dst_name, call_type, geom (GEOGRAPHY point)

Connections use the numeric paramstyle so queries from storage.query bind as :1, :2, ...
Any connector error while reading becomes DataFetchFailure.
"""

import logging
import os
from typing import Any, Callable

from core.errors import DataFetchFailure
from core.models import FilterPredicate
from storage.query import build_filter_query, incidents_table

logger = logging.getLogger("incident_map.storage.snowflake")

try:
    import snowflake.connector
except ImportError:
    snowflake = None  # type: ignore


REQUIRED_ENV = ("SNOWFLAKE_ACCOUNT", "SNOWFLAKE_USER", "SNOWFLAKE_PASSWORD")
# connect() keyword -> env var; blank means let the account default apply
OPTIONAL_ENV = {
    "warehouse": "SNOWFLAKE_WAREHOUSE",
    "database": "SNOWFLAKE_DATABASE",
    "schema": "SNOWFLAKE_SCHEMA",
    "role": "SNOWFLAKE_ROLE",
}


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def snowflake_configured() -> bool:
    return snowflake is not None and all(_env(name) for name in REQUIRED_ENV)


def _get_conn():
    """Numeric-paramstyle connection so storage.query binds apply as :1, :2, ..."""
    if not snowflake_configured():
        raise ValueError(f"Snowflake not configured (set {', '.join(REQUIRED_ENV)})")
    options = {key: _env(name) for key, name in OPTIONAL_ENV.items() if _env(name)}
    return snowflake.connector.connect(
        account=_env("SNOWFLAKE_ACCOUNT"),
        user=_env("SNOWFLAKE_USER"),
        password=_env("SNOWFLAKE_PASSWORD"),
        paramstyle="numeric",
        **options,
    )


def _serialize(value):
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "as_integer_ratio") and not isinstance(value, (bool, int, float)):
        return float(value)  # Decimal
    return value


def _cursor_to_list(cur) -> list[dict[str, Any]]:
    """Rows as dicts keyed by lowercase column name (unquoted Snowflake columns come back uppercase)."""
    if cur.description is None:
        return []
    cols = [str(d[0]).lower() for d in cur.description]
    return [{k: _serialize(v) for k, v in zip(cols, row)} for row in cur.fetchall()]


class SnowflakeIncidentStore:
    name = "snowflake"

    def __init__(self, connect: Callable | None = None, table: str | None = None):
        self._connect = connect or _get_conn
        self.table = table or incidents_table()

    def _query(self, sql: str, params: list) -> list[dict]:
        try:
            conn = self._connect()
            try:
                cur = conn.cursor()
                cur.execute(sql, params)
                rows = _cursor_to_list(cur)
                cur.close()
            finally:
                conn.close()
        except Exception as e:
            logger.warning("snowflake query failed: %s", e, exc_info=True)
            raise DataFetchFailure(f"snowflake query failed: {e}", source=self.table) from e
        logger.debug("snowflake query rows=%d params=%d", len(rows), len(params))
        return rows

    def fetch_all(self) -> list[dict]:
        return self._query(*build_filter_query(FilterPredicate(), self.table))

    def fetch_filtered(self, predicate: FilterPredicate) -> list[dict]:
        return self._query(*build_filter_query(predicate, self.table))

    def ensure_table(self, conn) -> None:
        cur = conn.cursor()
        cur.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id VARCHAR(128),
                datetime VARCHAR(64),
                complaint VARCHAR(256),
                address VARCHAR(1024),
                dst_name VARCHAR(128),
                call_type VARCHAR(128),
                geom GEOGRAPHY
            )
        """)
        cur.close()

    def insert_incidents(self, rows: list[dict]) -> int:
        """Load incident rows (seed/backfill). Rows without both coordinates get a NULL geom."""
        conn = self._connect()
        try:
            self.ensure_table(conn)
            cur = conn.cursor()
            for row in rows:
                params = [
                    row.get("id"),
                    row.get("datetime"),
                    row.get("complaint"),
                    (row.get("address") or "")[:1024] or None,
                    row.get("district"),
                    row.get("call_type"),
                ]
                if row.get("lon") is not None and row.get("lat") is not None:
                    cur.execute(
                        f"""INSERT INTO {self.table} (id, datetime, complaint, address, dst_name, call_type, geom)
                            SELECT :1, :2, :3, :4, :5, :6, ST_MAKEPOINT(:7, :8)""",
                        params + [float(row["lon"]), float(row["lat"])],
                    )
                else:
                    cur.execute(
                        f"""INSERT INTO {self.table} (id, datetime, complaint, address, dst_name, call_type)
                            VALUES (:1, :2, :3, :4, :5, :6)""",
                        params,
                    )
            cur.close()
        finally:
            conn.close()
        logger.info("snowflake inserted %d incidents into %s", len(rows), self.table)
        return len(rows)
