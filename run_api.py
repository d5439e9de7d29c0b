#!/usr/bin/env python3
"""
Run the Incident Map API (and the static frontend under public/ when present).
Set SNOWFLAKE_* in environment (or .env) to read incidents from Snowflake; otherwise
INCIDENTS_FILE (default data/incidents.json) is served.
"""
import os

from dotenv import load_dotenv

import uvicorn

load_dotenv()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("RELOAD", "0") == "1",
    )
