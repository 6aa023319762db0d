"""Command-line tools for pyisgweb."""
