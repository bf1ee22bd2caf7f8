"""HTTP API for the community service."""
