"""
Public API Layer

This module contains the user-facing API classes and functions.

Modules:
    planning_graph: PlanningGraph class - main entry point
    convenience: Top-level convenience functions (search, stats)

Design Principles:
    - Single entry point (PlanningGraph) for most operations
    - Async-first with sync wrappers (_sync suffix)
    - Lazy initialization - don't connect until needed
    - Context manager support for resource cleanup
"""

from plan_kg.api.planning_graph import PlanningGraph

__all__ = ["PlanningGraph"]
