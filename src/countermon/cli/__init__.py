"""
Command-line interface for the countermon package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
