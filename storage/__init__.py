"""Incident sources: Snowflake or JSON-file stores for the API, HTTP fetch for map sessions."""

from storage.json_store import JsonIncidentStore
from storage.snowflake_store import SnowflakeIncidentStore, snowflake_configured
from storage.http_source import fetch_incident_snapshot
from storage.query import build_filter_query



def get_store():
    """Use Snowflake if configured, else the JSON snapshot file."""
    if snowflake_configured():
        return SnowflakeIncidentStore()
    return JsonIncidentStore()


__all__ = [
    "JsonIncidentStore",
    "SnowflakeIncidentStore",
    "snowflake_configured",
    "fetch_incident_snapshot",
    "build_filter_query",
    "get_store",
]
