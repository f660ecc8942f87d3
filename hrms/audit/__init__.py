"""Audit: change logging and admin alerts."""
