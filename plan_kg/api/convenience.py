"""
Convenience Functions

Top-level functions for one-off searches without explicit PlanningGraph
instantiation. These are designed for quick scripts and REPL usage.

Example:
    >>> from plan_kg import search
    >>> for result in search("what blocks agent 0042#001", graph="./.plan-kg"):
    ...     print(result.entity.canonical_id, result.score)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plan_kg.types import GraphStats, SearchResult


def search(
    query: str,
    *,
    graph: str | Path,
    **kwargs: Any,
) -> list["SearchResult"]:
    """
    Search a planning graph.

    Args:
        query: Free-text query
        graph: Path to the graph directory
        **kwargs: Additional arguments passed to PlanningGraph.search()
    """
    from plan_kg.api.planning_graph import PlanningGraph

    with PlanningGraph(graph) as pg:
        return pg.search_sync(query, **kwargs)


def stats(*, graph: str | Path) -> "GraphStats":
    """Entity and relationship counts of a planning graph."""
    from plan_kg.api.planning_graph import PlanningGraph

    with PlanningGraph(graph) as pg:
        return pg.stats_sync()
