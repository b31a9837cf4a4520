"""Tests for seed extraction."""

import pytest

from plan_kg.retrieval import CanonicalIdSeedExtractor, StaticSeedExtractor


class TestCanonicalIdSeedExtractor:
    """Tests for pattern-based seed extraction."""

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("plan 0042", ["plan:0042"]),
            ("Plan #0042", ["plan:0042"]),
            ("plan-0042 status", ["plan:0042"]),
            ("plan:0042", ["plan:0042"]),
            ("what blocks agent 0042#001", ["agent:0042#001"]),
            ("agent:0042#001", ["agent:0042#001"]),
            ("who touches file:src/auth.ts, and why?", ["file:src/auth.ts"]),
            ("tag:search.", ["tag:search"]),
            ("plan 42", []),
            ("how does authentication work", []),
        ],
    )
    def test_extract(self, query, expected):
        assert CanonicalIdSeedExtractor().extract(query) == expected

    def test_order_of_appearance_without_duplicates(self):
        extractor = CanonicalIdSeedExtractor()
        seeds = extractor.extract("what blocks 0042#001 in plan 0042? also 0042#001 and plan 0041")
        assert seeds == ["agent:0042#001", "plan:0042", "plan:0041"]

    def test_deterministic(self):
        extractor = CanonicalIdSeedExtractor()
        query = "trace plan 0041 to agent 0042#002"
        assert extractor.extract(query) == extractor.extract(query)


class TestStaticSeedExtractor:
    """Tests for fixed seeds."""

    def test_ignores_query(self):
        extractor = StaticSeedExtractor(["plan:0001", "plan:0002", "plan:0001"])
        assert extractor.extract("anything") == ["plan:0001", "plan:0002"]
        assert extractor.extract("") == ["plan:0001", "plan:0002"]

    def test_returns_copy(self):
        extractor = StaticSeedExtractor(["plan:0001"])
        extractor.extract("x").append("plan:9999")
        assert extractor.extract("x") == ["plan:0001"]
