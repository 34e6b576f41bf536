"""
Local package for the Agentvisor application.

This package provides application-level configuration through the
app_globals module, plus the supervisor, fleet and console subsystems.
"""

from .global_config import app_globals

__all__ = ["app_globals"]
