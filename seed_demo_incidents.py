"""
Seed a demo incident snapshot for the map.

Writes INCIDENTS_FILE (default data/incidents.json) with incidents spread around a few
Madhya Pradesh districts, loads the same rows into Snowflake when SNOWFLAKE_* is set,
then asks a running API (INCIDENT_API_URL, default http://localhost:8000) how many
incidents it serves. A couple of rows have no coordinates or no call type on purpose.
Usage: python seed_demo_incidents.py
"""

import random
from datetime import datetime, timedelta

from dotenv import load_dotenv

from core.errors import DataFetchFailure
from storage import JsonIncidentStore, SnowflakeIncidentStore, fetch_incident_snapshot, snowflake_configured
from storage.http_source import incident_api_url

load_dotenv()

# district -> (lat, lon) of its headquarters
DEMO_DISTRICTS = {
    "Bhopal": (23.2599, 77.4126),
    "Indore": (22.7196, 75.8577),
    "Gwalior": (26.2183, 78.1828),
    "Jabalpur": (23.1815, 79.9864),
    "Ujjain": (23.1765, 75.7885),
    "Sagar": (23.8388, 78.7378),
}
DEMO_COMPLAINTS = ["Theft", "Assault", "Road Accident", "Domestic Violence", "Fire", "Missing Person"]
DEMO_CALL_TYPES = ["Emergency", "Non-Emergency", "Information"]
DEMO_STREETS = ["MG Road", "Station Road", "Civil Lines", "New Market", "Old City", "Bus Stand"]


def _occurred_at_for_index(i: int) -> str:
    """Spread incidents over the last 10 days with varied hour."""
    now = datetime.now()
    days_ago = int((i * 1.3) % 10)
    hour_offset = (i * 3) % 24
    t = now - timedelta(days=days_ago) - timedelta(hours=hour_offset)
    return t.strftime("%Y-%m-%d %H:%M:%S")


def build_demo_rows(count: int = 120, seed: int = 7) -> list[dict]:
    rng = random.Random(seed)
    rows = []
    districts = list(DEMO_DISTRICTS)
    for i in range(count):
        district = districts[i % len(districts)]
        lat, lon = DEMO_DISTRICTS[district]
        rows.append({
            "id": f"MP-{1000 + i}",
            "datetime": _occurred_at_for_index(i),
            "complaint": rng.choice(DEMO_COMPLAINTS),
            "address": f"{rng.randint(1, 200)} {rng.choice(DEMO_STREETS)}, {district}",
            "district": district,
            "call_type": rng.choice(DEMO_CALL_TYPES),
            "lon": round(lon + rng.uniform(-0.25, 0.25), 6),
            "lat": round(lat + rng.uniform(-0.25, 0.25), 6),
        })
    # not geocoded
    rows.append({"id": f"MP-{1000 + count}", "datetime": _occurred_at_for_index(count), "complaint": "Theft",
                 "address": "Unknown locality", "district": "Bhopal", "call_type": "Emergency", "lon": None, "lat": None})
    # no call type recorded
    rows.append({"id": f"MP-{1001 + count}", "datetime": _occurred_at_for_index(count + 1), "complaint": "Fire",
                 "address": "Rajwada", "district": "Indore", "call_type": "", "lon": 75.8553, "lat": 22.7185})
    return rows


def main():
    rows = build_demo_rows()
    store = JsonIncidentStore()
    store.write(rows)
    print(f"Wrote {len(rows)} demo incidents to {store.path}")
    if snowflake_configured():
        n = SnowflakeIncidentStore().insert_incidents(rows)
        print(f"Loaded {n} demo incidents into Snowflake")
    try:
        served = fetch_incident_snapshot()
        print(f"API at {incident_api_url()} now serves {len(served)} incidents")
    except DataFetchFailure as e:
        print(f"API not reachable ({e}); start it with python run_api.py")


if __name__ == "__main__":
    main()
