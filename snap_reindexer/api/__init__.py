"""HTTP status and control surface for the reindex pipeline."""
