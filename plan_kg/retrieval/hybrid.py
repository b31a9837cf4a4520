"""
Hybrid Retriever

Fuses three independent relevance signals into one ranked list:
    1. Lexical: full-text candidates from a LexicalIndex
    2. Graph: hop distance from the seed entities named in the query
    3. Semantic: nearest neighbors of the query embedding

Each enabled signal contributes weight * signal score per canonical id;
contributions are summed, ranked by total (ties by canonical id) and
truncated.

Features:
    - Per-call recipe override > configured default > routed recipe
    - Signals run concurrently; a failing signal source is logged and
      contributes nothing
    - Per-signal contributions attached to every result

Example:
    >>> retriever = HybridRetriever(storage, embeddings, lexical)
    >>> results = await retriever.search("what blocks agent 0042#001", limit=5)
    >>> results[0].recipe_name
    'EDGE_HYBRID_RRF'
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from plan_kg.retrieval.recipes import GraphConfig, SearchRecipe, get_recipe
from plan_kg.retrieval.router import QueryRouter
from plan_kg.retrieval.seeds import CanonicalIdSeedExtractor, SeedExtractor
from plan_kg.types import SearchResult

if TYPE_CHECKING:
    from plan_kg.storage.base import EmbeddingStore, GraphStorage, LexicalIndex

logger = logging.getLogger(__name__)


def _as_recipe(recipe: SearchRecipe | str) -> SearchRecipe:
    if isinstance(recipe, SearchRecipe):
        return recipe
    try:
        return get_recipe(recipe)
    except KeyError:
        raise ValueError(f"Unknown recipe: {recipe}") from None


class HybridRetriever:
    """
    Multi-signal search over the planning graph.

    The retriever holds no mutable state between calls; it can be shared
    by concurrent callers.

    Args:
        storage: Graph storage (entity lookup and traversal)
        embeddings: Embedding store (semantic signal)
        lexical: Lexical index (lexical signal)
        default_recipe: Recipe (or built-in recipe name) used when a call
            passes no override. None routes each query by intent.
        seed_extractor: Policy that finds seed entities in the query
        router: Intent router used when no recipe is configured
        over_retrieve_factor: Each source is asked for limit * factor
            candidates

    Raises:
        ValueError: If default_recipe names no built-in recipe, or
            over_retrieve_factor < 1
    """

    def __init__(
        self,
        storage: "GraphStorage",
        embeddings: "EmbeddingStore",
        lexical: "LexicalIndex",
        default_recipe: SearchRecipe | str | None = None,
        *,
        seed_extractor: SeedExtractor | None = None,
        router: QueryRouter | None = None,
        over_retrieve_factor: int = 3,
    ) -> None:
        if over_retrieve_factor < 1:
            raise ValueError(f"over_retrieve_factor must be >= 1, got {over_retrieve_factor}")

        self.storage = storage
        self.embeddings = embeddings
        self.lexical = lexical
        self.default_recipe = _as_recipe(default_recipe) if default_recipe is not None else None
        self.seed_extractor = seed_extractor or CanonicalIdSeedExtractor()
        self.router = router or QueryRouter()
        self.over_retrieve_factor = over_retrieve_factor

    def resolve_recipe(
        self, query_text: str, recipe: SearchRecipe | str | None = None
    ) -> SearchRecipe:
        """Effective recipe for a call: override, else default, else routed."""
        if recipe is not None:
            return _as_recipe(recipe)
        if self.default_recipe is not None:
            return self.default_recipe
        return self.router.route(query_text)

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    async def _lexical_scores(self, query_text: str, k: int) -> dict[str, float]:
        scores: dict[str, float] = defaultdict(float)
        for canonical_id, score in await self.lexical.search(query_text, k):
            scores[canonical_id] += score
        return scores

    async def _graph_scores(self, query_text: str, graph_config: GraphConfig) -> dict[str, float]:
        """Decay factor per reachable entity (hop_decay ** (d - 1))."""

        seeds = self.seed_extractor.extract(query_text)
        logger.debug(f"Seeds for {query_text!r}: {seeds}")
        if not seeds:
            return {}

        seed_entities = await self.storage.get_entities(seeds)
        if not seed_entities:
            return {}

        distances = await self.storage.traverse(
            [e.id for e in seed_entities], graph_config.max_depth
        )
        return {
            canonical_id: graph_config.hop_decay ** (distance - 1)
            for canonical_id, distance in distances.items()
            if distance >= 1
        }

    async def _semantic_scores(
        self, query_text: str, k: int, threshold: float | None
    ) -> dict[str, float]:
        vector = await self.embeddings.embed(query_text)
        scores: dict[str, float] = {}
        for canonical_id, similarity in await self.embeddings.find_similar(vector, k):
            if threshold is not None and similarity < threshold:
                continue
            scores[canonical_id] = max(similarity, scores.get(canonical_id, similarity))
        return scores

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(
        self,
        query_text: str,
        limit: int = 10,
        recipe: SearchRecipe | str | None = None,
    ) -> list[SearchResult]:
        """
        Ranked entities for a query.

        Args:
            query_text: Free-text query
            limit: Maximum number of results
            recipe: Per-call recipe (or built-in name); applies to this call only.
                A name is resolved before any signal source is queried, so an
                unknown name fails the call without partial work.

        Returns:
            Results sorted by score descending, ties by canonical id. Empty
            when no signal produced a candidate.

        Raises:
            ValueError: If recipe names no built-in recipe. This is the only
                configuration error search raises; signal failures are
                logged and contribute nothing.
        """
        start = time.perf_counter_ns()
        effective = self.resolve_recipe(query_text, recipe)
        if limit <= 0:
            return []

        weights = effective.weights
        k = limit * self.over_retrieve_factor

        named_tasks: dict[str, asyncio.Task[Any]] = {}
        if weights.lexical > 0:
            named_tasks["lexical"] = asyncio.create_task(self._lexical_scores(query_text, k))
        if weights.graph > 0:
            if effective.graph_config is None:
                logger.debug(f"Recipe {effective.name} has no graph config, skipping graph signal")
            else:
                named_tasks["graph"] = asyncio.create_task(
                    self._graph_scores(query_text, effective.graph_config)
                )
        if weights.semantic > 0:
            named_tasks["semantic"] = asyncio.create_task(
                self._semantic_scores(query_text, k, effective.similarity_threshold)
            )

        signal_weights = {
            "lexical": weights.lexical,
            "graph": weights.graph,
            "semantic": weights.semantic,
        }
        totals: dict[str, float] = defaultdict(float)
        contributions: dict[str, dict[str, float]] = defaultdict(dict)

        if named_tasks:
            task_names = list(named_tasks.keys())
            results = await asyncio.gather(*named_tasks.values(), return_exceptions=True)

            for name, result in zip(task_names, results):
                if isinstance(result, BaseException):
                    logger.warning(f"Retrieval signal '{name}' failed: {result}")
                    continue
                for canonical_id, score in result.items():
                    weighted = signal_weights[name] * score
                    totals[canonical_id] += weighted
                    contributions[canonical_id][name] = weighted

        ranked = sorted(
            ((cid, score) for cid, score in totals.items() if score != 0),
            key=lambda item: (-item[1], item[0]),
        )

        entities = {
            e.canonical_id: e
            for e in await self.storage.get_entities([cid for cid, _ in ranked])
        }
        output: list[SearchResult] = []
        for canonical_id, score in ranked:
            entity = entities.get(canonical_id)
            if entity is None:
                continue
            output.append(
                SearchResult(
                    entity=entity,
                    score=score,
                    recipe_name=effective.name,
                    signals=contributions[canonical_id],
                )
            )
            if len(output) >= limit:
                break

        elapsed_ms = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(
            f"Search {query_text!r}: recipe={effective.name}, "
            f"{len(ranked)} candidates, {len(output)} results, {elapsed_ms}ms"
        )
        return output

    def search_sync(
        self,
        query_text: str,
        limit: int = 10,
        recipe: SearchRecipe | str | None = None,
    ) -> list[SearchResult]:
        """Synchronous wrapper around search() (not for use inside a running loop)."""
        return asyncio.run(self.search(query_text, limit, recipe))
