# src/pollwise/web/__init__.py
"""HTTP interface for Pollwise."""
