"""Loans: employee loan requests."""
