"""Repository interfaces for Optix Flow.

Abstract base classes (ports) for the backend collections. The adapter
implementing them is optix_flow.adapters.rest_api.
"""

from .repository import ProjectRepository, SubtaskRepository, TaskRepository

__all__ = [
    "TaskRepository",
    "SubtaskRepository",
    "ProjectRepository",
]
