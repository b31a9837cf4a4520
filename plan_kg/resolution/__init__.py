"""
Entity Resolution

Duplicate and near-duplicate detection across stored entities.

Modules:
    resolver: EntityResolver, SimilarityScore, compute_similarity
"""

from plan_kg.resolution.resolver import (
    THRESHOLDS,
    WEIGHTS,
    EntityResolver,
    ResolutionMatch,
    ResolutionResult,
    SimilarityScore,
    compute_similarity,
)

__all__ = [
    "EntityResolver",
    "ResolutionMatch",
    "ResolutionResult",
    "SimilarityScore",
    "compute_similarity",
    "WEIGHTS",
    "THRESHOLDS",
]
