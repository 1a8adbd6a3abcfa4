"""HTTP API for the tracker front-end."""
