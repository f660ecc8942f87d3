"""Core HR: companies, employees and access scoping."""
