"""FinOps HTTP API."""
