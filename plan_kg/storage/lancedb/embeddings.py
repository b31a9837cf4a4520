"""
LanceDB Embedding Store

Entity vectors keyed by canonical id, with cosine nearest-neighbor search.
"""

import asyncio
import logging
import math
import threading
from pathlib import Path

import lancedb
import pyarrow as pa

from plan_kg.providers.base import EmbeddingProvider
from plan_kg.storage.base import EmbeddingStore

logger = logging.getLogger(__name__)


class LanceDBEmbeddingStore(EmbeddingStore):
    """
    Embedding store on a LanceDB table.

    Table schema: canonical_id (string), vector (fixed-size float list).
    The table is created on the first set(); its vector size is fixed by
    that first vector.

    Thread safety:
        Uses thread-local connections since asyncio.to_thread() may run
        each call on a different thread. Writes are serialised.

    Args:
        path: LanceDB directory
        provider: Embedding provider used by embed(); optional when callers
            only store and search precomputed vectors
        table_name: Table holding the vectors
    """

    def __init__(
        self,
        path: str | Path,
        provider: EmbeddingProvider | None = None,
        table_name: str = "entity_vectors",
    ):
        self.path = Path(path)
        self.provider = provider
        self.table_name = table_name
        self._local = threading.local()
        self._write_lock = threading.Lock()

    @staticmethod
    def _vector_schema(dimensions: int) -> pa.Schema:
        return pa.schema([
            ("canonical_id", pa.string()),
            ("vector", pa.list_(pa.float32(), dimensions)),
        ])

    @staticmethod
    def _escape_sql_string(value: str) -> str:
        """Escape single quotes for SQL WHERE clauses."""
        return value.replace("'", "''")

    def _get_db(self) -> lancedb.DBConnection:
        """Get thread-local LanceDB connection, creating if needed."""
        db = getattr(self._local, "db", None)
        if db is None:
            self.path.mkdir(parents=True, exist_ok=True)
            db = lancedb.connect(str(self.path))
            self._local.db = db
        return db

    def _has_table(self, db: lancedb.DBConnection) -> bool:
        # Recent LanceDB returns a response object with a `tables` attribute
        listed = db.list_tables()
        tables = getattr(listed, "tables", listed)
        return self.table_name in {str(name) for name in tables}

    async def close(self) -> None:
        if getattr(self._local, "db", None) is not None:
            self._local.db = None

    async def embed(self, text: str) -> list[float]:
        if self.provider is None:
            raise RuntimeError("No embedding provider configured for this store")
        return await self.provider.embed_single(text)

    async def get(self, canonical_id: str) -> list[float] | None:
        def _get() -> list[float] | None:
            db = self._get_db()
            if not self._has_table(db):
                return None
            table = db.open_table(self.table_name)
            results = (
                table.search()
                .where(f"canonical_id = '{self._escape_sql_string(canonical_id)}'")
                .limit(1)
                .to_arrow()
            )
            if results.num_rows == 0:
                return None
            return [float(x) for x in results.column("vector")[0].as_py()]

        return await asyncio.to_thread(_get)

    async def set(self, canonical_id: str, vector: list[float]) -> None:
        def _set() -> None:
            db = self._get_db()
            data = [{"canonical_id": canonical_id, "vector": [float(x) for x in vector]}]
            with self._write_lock:
                if self._has_table(db):
                    table = db.open_table(self.table_name)
                    table.delete(
                        f"canonical_id = '{self._escape_sql_string(canonical_id)}'"
                    )
                    table.add(data)
                else:
                    table = db.create_table(
                        self.table_name, schema=self._vector_schema(len(vector))
                    )
                    table.add(data)

        await asyncio.to_thread(_set)

    async def find_similar(
        self, vector: list[float], limit: int = 50
    ) -> list[tuple[str, float]]:
        if limit <= 0 or not any(vector):
            return []

        def _search() -> list[tuple[str, float]]:
            db = self._get_db()
            if not self._has_table(db):
                return []

            table = db.open_table(self.table_name)
            results = table.search(vector).metric("cosine").limit(limit).to_arrow()

            output: list[tuple[str, float]] = []
            ids = results.column("canonical_id").to_pylist()
            distances = results.column("_distance").to_pylist()
            for cid, distance in zip(ids, distances):
                # Zero vectors have no defined cosine distance
                if distance is None or math.isnan(distance):
                    continue
                output.append((cid, 1.0 - distance))
            output.sort(key=lambda item: (-item[1], item[0]))
            return output

        return await asyncio.to_thread(_search)
