"""
Command-line entrypoint for the Community SDK (`community-sdk`).
"""

from .main import app, main  # noqa: F401

__all__ = ["app", "main"]
