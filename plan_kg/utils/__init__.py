"""
Utility Functions

Modules:
    similarity: tokenize, jaccard_similarity, cosine_similarity
"""

from plan_kg.utils.similarity import cosine_similarity, jaccard_similarity, tokenize

__all__ = ["tokenize", "jaccard_similarity", "cosine_similarity"]
