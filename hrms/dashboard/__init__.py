"""Dashboard widget aggregates."""
