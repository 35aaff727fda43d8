"""Live aircraft tracking: flights proxy plus viewport-scoped reconciliation."""
