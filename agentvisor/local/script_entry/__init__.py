"""
Entry point scripts for processes spawned by Agentvisor.

These are minimal scripts run with `python -m`, kept apart from the supervisor
so that a worker imports only what it needs.
"""
