"""HTTP API for the incident map."""
