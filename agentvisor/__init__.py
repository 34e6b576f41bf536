"""
Agentvisor: launches a fixed fleet of agent worker processes, restarts them
when they crash, and offers an operator console to inspect and control them.
"""

__version__ = "0.1.0"
