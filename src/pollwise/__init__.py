# src/pollwise/__init__.py
"""Pollwise: bias and grammar analysis for SMS poll text."""

__version__ = "0.1.0"
