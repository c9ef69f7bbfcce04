"""
Utility modules for tagtab.
"""

from .logging import get_logger, reset_logging, setup_logging

__all__ = [
    "get_logger",
    "reset_logging",
    "setup_logging",
]
