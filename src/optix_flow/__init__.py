"""Optix Flow - task and project state synchronization."""

__version__ = "0.4.0"
