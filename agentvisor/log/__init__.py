"""
Logging module for the application.
This module provides functionality to set up console, file and Loki logging.
"""

from .setup import setup_logging, toggle_verbose_logging

__all__ = ["setup_logging", "toggle_verbose_logging"]
