"""Tests for entity, relationship and result types."""

import pytest
from pydantic import ValidationError

from plan_kg.types import (
    Entity,
    EntityType,
    GraphStats,
    Relationship,
    RelationType,
    SearchResult,
)


class TestEntity:
    """Tests for Entity identity semantics."""

    def test_equality_uses_canonical_id(self):
        """Entities with the same canonical id are equal regardless of internal id."""
        a = Entity(id=1, type="plan", canonical_id="plan:0042", name="Search rework")
        b = Entity(id=7, type="plan", canonical_id="plan:0042", name="Renamed")
        assert a == b
        assert hash(a) == hash(b)

    def test_different_canonical_ids_not_equal(self):
        """Same internal id but different canonical ids are different entities."""
        a = Entity(id=1, type="plan", canonical_id="plan:0042", name="x")
        b = Entity(id=1, type="plan", canonical_id="plan:0043", name="x")
        assert a != b

    def test_set_deduplicates_by_canonical_id(self):
        """Entities collapse in sets by canonical id."""
        entities = {
            Entity(id=1, type="plan", canonical_id="plan:0042", name="a"),
            Entity(id=2, type="plan", canonical_id="plan:0042", name="b"),
        }
        assert len(entities) == 1

    def test_enum_type_stored_as_value(self):
        """EntityType members are stored as their string value."""
        entity = Entity(id=1, type=EntityType.AGENT, canonical_id="agent:0042#001", name="x")
        assert entity.type == "agent"

    def test_metadata_defaults_empty(self):
        entity = Entity(id=1, type="tag", canonical_id="tag:search", name="search")
        assert entity.metadata == {}
        assert entity.source_path is None


class TestRelationship:
    """Tests for Relationship validation."""

    def test_confidence_default(self):
        rel = Relationship(id=1, source_id=1, target_id=2, relation_type="CONTAINS")
        assert rel.confidence == 1.0

    def test_confidence_out_of_range_rejected(self):
        """Confidence must be within [0, 1]."""
        with pytest.raises(ValidationError):
            Relationship(id=1, source_id=1, target_id=2, relation_type="BLOCKS", confidence=1.5)
        with pytest.raises(ValidationError):
            Relationship(id=1, source_id=1, target_id=2, relation_type="BLOCKS", confidence=-0.1)

    def test_relation_type_enum_value(self):
        rel = Relationship(
            id=1, source_id=1, target_id=2, relation_type=RelationType.DEPENDS_ON
        )
        assert rel.relation_type == "DEPENDS_ON"


class TestResults:
    """Tests for SearchResult and GraphStats."""

    def test_search_result_signals_default(self):
        entity = Entity(id=1, type="plan", canonical_id="plan:0042", name="x")
        result = SearchResult(entity=entity, score=0.6, recipe_name="LEXICAL_FIRST")
        assert result.signals == {}
        assert result.recipe_name == "LEXICAL_FIRST"

    def test_graph_stats_as_dict(self):
        stats = GraphStats(
            entity_counts={"plan": 2},
            relation_counts={"CONTAINS": 1},
            total_entities=2,
            total_relations=1,
        )
        data = stats.as_dict()
        assert data["entity_counts"] == {"plan": 2}
        assert data["last_indexed"] == ""
