"""
Entity Resolution

Finds duplicate and near-duplicate entities of one type (features by
default) and links them with SIMILAR_TO relationships.

Similarity Signals:
    exact       1.0 if canonical ids are equal            weight 0.4
    lexical     Jaccard over name tokens                   weight 0.2
    semantic    cosine over stored embedding vectors       weight 0.3
    structural  Jaccard over neighbor canonical ids        weight 0.1

The combined score is the weighted mean over the signals that apply (the
exact signal only counts when it fires), clamped to [0, 1].

Example:
    >>> resolver = EntityResolver(storage, embeddings)
    >>> result = await resolver.resolve_all()
    >>> for line in result.suggestions:
    ...     print(line)
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import BaseModel

from plan_kg.types import Entity, EntityType, RelationType
from plan_kg.utils.similarity import cosine_similarity, jaccard_similarity, tokenize

if TYPE_CHECKING:
    from plan_kg.storage.base import EmbeddingStore, GraphStorage

logger = logging.getLogger(__name__)

WEIGHTS = {
    "exact": 0.4,
    "lexical": 0.2,
    "semantic": 0.3,
    "structural": 0.1,
}

THRESHOLDS = {
    "duplicate": 0.95,
    "duplicate_lexical": 0.98,
    "duplicate_semantic": 0.98,
    "duplicate_structural": 0.95,
    "similar": 0.8,
    "related": 0.6,
}


class SimilarityScore(BaseModel):
    """Per-signal similarity of two entities and their combined score."""

    exact: float
    lexical: float
    semantic: float
    structural: float
    combined: float

    @property
    def is_duplicate(self) -> bool:
        if self.combined >= THRESHOLDS["duplicate"]:
            return True
        # Distinct canonical ids can still be duplicates when every other signal agrees
        return (
            self.lexical >= THRESHOLDS["duplicate_lexical"]
            and self.semantic >= THRESHOLDS["duplicate_semantic"]
            and self.structural >= THRESHOLDS["duplicate_structural"]
        )


class ResolutionMatch(BaseModel):
    a: Entity
    b: Entity
    score: SimilarityScore


class ResolutionResult(BaseModel):
    """Output of EntityResolver.resolve_all()."""

    duplicates: list[ResolutionMatch] = []
    similar: list[ResolutionMatch] = []
    suggestions: list[str] = []


def compute_similarity(
    a: Entity,
    b: Entity,
    vector_a: list[float] | None,
    vector_b: list[float] | None,
    structural: float = 0.0,
) -> SimilarityScore:
    """Score two entities on all four signals."""
    exact = 1.0 if a.canonical_id == b.canonical_id else 0.0
    lexical = jaccard_similarity(tokenize(a.name), tokenize(b.name))
    semantic = cosine_similarity(vector_a, vector_b)

    weighted = (
        WEIGHTS["exact"] * exact
        + WEIGHTS["lexical"] * lexical
        + WEIGHTS["semantic"] * semantic
        + WEIGHTS["structural"] * structural
    )
    total_weight = WEIGHTS["lexical"] + WEIGHTS["semantic"] + WEIGHTS["structural"]
    if exact >= 1.0:
        total_weight += WEIGHTS["exact"]
    combined = weighted / total_weight if total_weight > 0 else 0.0

    return SimilarityScore(
        exact=exact,
        lexical=lexical,
        semantic=semantic,
        structural=structural,
        combined=max(0.0, min(1.0, combined)),
    )


class EntityResolver:
    """
    Duplicate and similarity detection over stored entities.

    Args:
        storage: Graph storage holding the entities
        embeddings: Embedding store holding their vectors
    """

    def __init__(self, storage: "GraphStorage", embeddings: "EmbeddingStore") -> None:
        self.storage = storage
        self.embeddings = embeddings

    async def _neighbor_ids(self, entity: Entity) -> set[str]:
        # SIMILAR_TO edges are this resolver's own output
        return {
            neighbor.canonical_id
            for rel, neighbor in await self.storage.get_neighbors(entity.id, "both")
            if rel.relation_type != RelationType.SIMILAR_TO.value
        }

    async def _link(self, match: ResolutionMatch) -> None:
        await self.storage.upsert_relationship(
            match.a.id,
            match.b.id,
            RelationType.SIMILAR_TO.value,
            confidence=match.score.combined,
            metadata={
                "lexical": match.score.lexical,
                "semantic": match.score.semantic,
                "structural": match.score.structural,
                "detected_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    async def resolve_all(self, entity_type: str = EntityType.FEATURE.value) -> ResolutionResult:
        """
        Compare every pair of entities of a type.

        Duplicates and similar pairs are linked with a SIMILAR_TO
        relationship whose confidence is the combined score.
        """
        entities = await self.storage.get_entities_by_type(entity_type)
        result = ResolutionResult()
        if len(entities) < 2:
            return result

        vectors = await asyncio.gather(*(self.embeddings.get(e.canonical_id) for e in entities))
        neighbors = await asyncio.gather(*(self._neighbor_ids(e) for e in entities))

        for i, a in enumerate(entities):
            for j in range(i + 1, len(entities)):
                b = entities[j]
                structural = jaccard_similarity(neighbors[i], neighbors[j])
                score = compute_similarity(a, b, vectors[i], vectors[j], structural)

                if score.is_duplicate:
                    match = ResolutionMatch(a=a, b=b, score=score)
                    result.duplicates.append(match)
                    await self._link(match)
                elif score.combined >= THRESHOLDS["similar"]:
                    match = ResolutionMatch(a=a, b=b, score=score)
                    result.similar.append(match)
                    await self._link(match)

        for m in result.duplicates:
            result.suggestions.append(
                f'DUPLICATE: "{m.a.name}" ({m.a.canonical_id}) and "{m.b.name}" '
                f"({m.b.canonical_id}) are {m.score.combined * 100:.0f}% similar. "
                "Consider consolidating."
            )
        for m in result.similar:
            result.suggestions.append(
                f'SIMILAR: "{m.a.name}" ({m.a.canonical_id}) and "{m.b.name}" '
                f"({m.b.canonical_id}) are {m.score.combined * 100:.0f}% similar. "
                "Consider linking or clarifying scope."
            )

        logger.info(
            f"Resolved {len(entities)} {entity_type} entities: "
            f"{len(result.duplicates)} duplicates, {len(result.similar)} similar"
        )
        return result

    async def check_new_feature(self, name: str, description: str = "") -> list[Entity]:
        """
        Stored features that a proposed feature would overlap.

        Compares the proposal's embedding with every stored feature vector
        when the store can embed text; otherwise compares names. At most ten
        features are returned, most similar first.
        """
        query_text = f"{name} {description}".strip()
        feature = EntityType.FEATURE.value

        try:
            vector = await self.embeddings.embed(query_text)
        except RuntimeError:
            logger.debug("Embedding store cannot embed text, comparing feature names")
        else:
            features = await self.storage.get_entities_by_type(feature)
            stored = await asyncio.gather(*(self.embeddings.get(e.canonical_id) for e in features))
            scored = [
                (cosine_similarity(vector, other), entity)
                for entity, other in zip(features, stored)
            ]
            matches = [(s, e) for s, e in scored if s >= THRESHOLDS["similar"]]
            matches.sort(key=lambda item: (-item[0], item[1].canonical_id))
            return [entity for _, entity in matches[:10]]

        name_tokens = tokenize(name)
        return [
            entity
            for entity in await self.storage.get_entities_by_type(feature)
            if jaccard_similarity(name_tokens, tokenize(entity.name)) >= THRESHOLDS["similar"]
        ]
