"""Use cases, ports and configuration for FinOps."""
