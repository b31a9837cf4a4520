"""
Seed Extraction

Seeds are the entities a query names directly; the graph signal walks
outward from them. Extraction is a policy object so the fusion algorithm
does not depend on any particular heuristic.
"""

import re
from abc import ABC, abstractmethod

_LITERAL_ID = re.compile(r"\b(plan|agent|feature|file|tag|concept):([^\s,;]+)", re.I)
_PLAN_REF = re.compile(r"plan[\s:#-]*(\d{4})\b", re.I)
_AGENT_REF = re.compile(r"(\d{4})#(\d{3})")
_TRAILING = ".,;:!?)]}'\""


class SeedExtractor(ABC):
    """Turns query text into seed canonical ids."""

    @abstractmethod
    def extract(self, query_text: str) -> list[str]:
        """
        Seed canonical ids for a query.

        Must be deterministic: the same text always yields the same list.
        """
        ...


class CanonicalIdSeedExtractor(SeedExtractor):
    """
    Pattern-based seed extraction.

    Recognises:
        - literal canonical ids: "plan:0042", "file:src/auth.ts"
        - plan references: "plan 0042", "plan #0042" -> plan:0042
        - agent references: "0042#001" -> agent:0042#001

    Seeds are returned in order of first appearance, without duplicates.

    Example:
        >>> CanonicalIdSeedExtractor().extract("what blocks 0042#001 in plan 0042?")
        ['agent:0042#001', 'plan:0042']
    """

    def extract(self, query_text: str) -> list[str]:
        found: list[tuple[int, str]] = []

        for m in _LITERAL_ID.finditer(query_text):
            value = m.group(2).rstrip(_TRAILING)
            if value:
                found.append((m.start(), f"{m.group(1).lower()}:{value}"))
        for m in _PLAN_REF.finditer(query_text):
            found.append((m.start(), f"plan:{m.group(1)}"))
        for m in _AGENT_REF.finditer(query_text):
            found.append((m.start(), f"agent:{m.group(1)}#{m.group(2)}"))

        found.sort(key=lambda item: item[0])
        return list(dict.fromkeys(seed for _, seed in found))


class StaticSeedExtractor(SeedExtractor):
    """Always returns the same seeds (for pinned graph searches and tests)."""

    def __init__(self, seeds: list[str]):
        self.seeds = list(dict.fromkeys(seeds))

    def extract(self, query_text: str) -> list[str]:
        return list(self.seeds)
