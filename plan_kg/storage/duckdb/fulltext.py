"""
DuckDB Lexical Index

BM25 ranking over entity canonical ids and names using DuckDB's fts
extension. The index is not maintained incrementally by DuckDB, so it is
rebuilt on the next search after any write to the graph.
"""

import logging

from plan_kg.storage.base import LexicalIndex
from plan_kg.storage.duckdb.graph import DuckDBGraphStorage

logger = logging.getLogger(__name__)


class DuckDBLexicalIndex(LexicalIndex):
    """
    Lexical index backed by the graph's own DuckDB database.

    Example:
        >>> lexical = DuckDBLexicalIndex(storage)
        >>> await lexical.search("plan 0042", limit=10)
        [('plan:0042', 1.73)]
    """

    def __init__(self, storage: DuckDBGraphStorage):
        self.storage = storage
        self._built_revision: int | None = None

    async def refresh(self) -> None:
        """Rebuild the index if the graph changed since the last build."""
        if self._built_revision == self.storage.revision:
            return
        self._built_revision = await self.storage.rebuild_fulltext_index()

    async def search(self, query_text: str, limit: int = 50) -> list[tuple[str, float]]:
        if limit <= 0 or not query_text.strip():
            return []
        await self.refresh()
        return await self.storage.search_fulltext(query_text, limit)
