"""Documents: expiry alerts, AI search and analysis, Google Drive storage."""
