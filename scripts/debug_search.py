#!/usr/bin/env python3
"""Debug script to inspect how a query is routed, seeded and scored."""

import asyncio
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

# Set up logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
# Only show debug for our modules
logging.getLogger("plan_kg").setLevel(logging.DEBUG)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

from plan_kg import PlanningGraph
from plan_kg.config import KGConfig
from plan_kg.retrieval import CanonicalIdSeedExtractor, QueryRouter


async def main(graph_path: str, query: str, recipe: str | None) -> None:
    config = KGConfig()

    # 1. Routing and seeds (no storage needed)
    print("=" * 60)
    print("1. ROUTING")
    print("=" * 60)
    print(f"Query:   {query!r}")
    print(f"Routed:  {QueryRouter.classify(query)}")
    print(f"Default: {config.default_recipe or '(route by query)'}")
    print(f"Seeds:   {CanonicalIdSeedExtractor().extract(query)}")

    async with PlanningGraph(graph_path, config=config) as graph:
        # 2. Graph health
        print("\n" + "=" * 60)
        print("2. GRAPH STATS")
        print("=" * 60)
        stats = await graph.stats()
        print(f"Entities: {stats.total_entities} {stats.entity_counts}")
        print(f"Relations: {stats.total_relations} {stats.relation_counts}")
        print(f"Last indexed: {stats.last_indexed or 'never'}")

        # 3. Per-signal breakdown
        print("\n" + "=" * 60)
        print("3. RESULTS")
        print("=" * 60)
        results = await graph.search(query, recipe=recipe)
        if not results:
            print("No results.")
        for i, result in enumerate(results, 1):
            signals = ", ".join(f"{k}={v:.3f}" for k, v in sorted(result.signals.items()))
            print(
                f"{i:2d}. {result.entity.canonical_id:<30} {result.score:.3f}  "
                f"[{result.recipe_name}] {signals}"
            )


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: debug_search.py <graph-dir> <query> [recipe]")
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None))
