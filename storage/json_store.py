"""Incident store backed by a JSON file (list of incident rows). Default when Snowflake is not configured."""

import json
import logging
import os

from core.config import incidents_file
from core.errors import DataFetchFailure
from core.filtering import apply_filter
from core.models import FilterPredicate, Incident

logger = logging.getLogger("incident_map.storage.json_store")


class JsonIncidentStore:
    name = "json"

    def __init__(self, path: str | None = None):
        self.path = path or incidents_file()

    def _read(self) -> list[dict]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise DataFetchFailure(f"cannot read incidents from {self.path}: {e}", source=self.path) from e
        if not isinstance(data, list):
            raise DataFetchFailure(f"expected a list of incidents in {self.path}", source=self.path)
        return data

    def fetch_all(self) -> list[dict]:
        return [Incident.from_row(r).to_dict() for r in self._read() if isinstance(r, dict)]

    def fetch_filtered(self, predicate: FilterPredicate) -> list[dict]:
        incidents = [Incident.from_row(r) for r in self._read() if isinstance(r, dict)]
        return [inc.to_dict() for inc in apply_filter(incidents, predicate)]

    def write(self, rows: list[dict]) -> None:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(rows, fh, indent=2)
        logger.info("wrote %d incidents to %s", len(rows), self.path)
