"""Integration tests against a live ISG."""
