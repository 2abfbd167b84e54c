"""Utility modules."""

from src.utils.logging import setup_logging

__all__ = [
    "setup_logging",
]
