"""
Command-line interface for the saraudit package.

This module provides the `sar-audit` entry point.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
