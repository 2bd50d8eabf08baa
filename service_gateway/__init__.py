"""Image Cache Gateway service."""
