"""Environment-derived settings."""
