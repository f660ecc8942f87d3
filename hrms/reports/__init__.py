"""Reports: module registry, preview and CSV/PDF export."""
