"""Hosted backend API: HTTP client and per-collection endpoint wrappers."""
