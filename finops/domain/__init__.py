"""Pure business types and rules for FinOps."""
