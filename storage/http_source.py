"""One-shot snapshot fetch from the incident API over HTTP."""

import logging
import os

import httpx

from core.errors import DataFetchFailure

logger = logging.getLogger("incident_map.storage.http_source")

DEFAULT_API_URL = "http://localhost:8000"


def incident_api_url() -> str:
    return (os.environ.get("INCIDENT_API_URL") or DEFAULT_API_URL).rstrip("/")


def fetch_incident_snapshot(
    base_url: str | None = None,
    *,
    client: httpx.Client | None = None,
    timeout: float = 10.0,
) -> list[dict]:
    """GET /api/incidents. Raises DataFetchFailure on transport errors, non-2xx status or a non-list body."""
    url = (base_url or incident_api_url()).rstrip("/") + "/api/incidents"
    own_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        resp = http.get(url)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as e:
        code = e.response.status_code
        raise DataFetchFailure(f"HTTP error! status: {code}", source=url, status_code=code) from e
    except httpx.HTTPError as e:
        raise DataFetchFailure(f"request failed: {e}", source=url) from e
    except ValueError as e:
        raise DataFetchFailure(f"invalid JSON from {url}", source=url) from e
    finally:
        if own_client:
            http.close()
    if not isinstance(data, list):
        raise DataFetchFailure(f"expected a list of incidents from {url}", source=url)
    bad = sum(1 for row in data if not isinstance(row, dict))
    if bad:
        raise DataFetchFailure(f"{bad} incident rows from {url} are not objects", source=url)
    logger.info("snapshot fetched url=%s rows=%d", url, len(data))
    return data
