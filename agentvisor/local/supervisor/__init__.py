"""
The Supervisor package.
Manages the lifecycle of the agent worker processes.

This package contains the AgentProcess class and its helper modules,
which together handle spawning, watching, restarting and stopping agents,
and building the fleet at startup.
"""
from .supervisor import AgentDescriptor, AgentProcess

__all__ = ['AgentDescriptor', 'AgentProcess']
