"""
Graph Analysis

Read-only checks over a populated planning graph.

Modules:
    conflicts: ConflictDetector, ConflictReport
"""

from plan_kg.analysis.conflicts import (
    ConflictDetector,
    ConflictReport,
    ConflictSeverity,
    ConflictType,
)

__all__ = [
    "ConflictDetector",
    "ConflictReport",
    "ConflictSeverity",
    "ConflictType",
]
