"""
Conflict Detection

Scans the planning graph for coordination problems between agents and
features.

Checks:
    file_contention      two or more WIP agents MODIFY one file     error
    feature_overlap      SIMILAR_TO at or above overlap_threshold   warning
    circular_dependency  a cycle of DEPENDS_ON edges                error
    stale_wip            WIP agent untouched for N days             warning/error

An agent is work in progress when metadata["status"] == "WIP"; its age is
measured from the entity's updated_at timestamp.

Example:
    >>> detector = ConflictDetector(storage)
    >>> for report in await detector.detect_all():
    ...     print(report.severity, report.message)
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import defaultdict
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from plan_kg.types import Entity, EntityType, RelationType

if TYPE_CHECKING:
    from plan_kg.storage.base import GraphStorage

logger = logging.getLogger(__name__)

WIP_STATUS = "WIP"


class ConflictType(str, Enum):
    """Kinds of conflict the detector reports."""

    FILE_CONTENTION = "file_contention"
    FEATURE_OVERLAP = "feature_overlap"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    STALE_WIP = "stale_wip"


class ConflictSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class ConflictReport(BaseModel):
    """
    One detected conflict.

    Attributes:
        type: Conflict kind
        severity: warning or error
        message: Human-readable description
        entities: Canonical ids involved, in a check-specific order
        metadata: Check-specific details (counts, confidence, age)
    """

    type: ConflictType
    severity: ConflictSeverity
    message: str
    entities: list[str]
    metadata: dict[str, Any] = {}

    model_config = ConfigDict(use_enum_values=True)


def _is_wip(entity: Entity) -> bool:
    return entity.metadata.get("status") == WIP_STATUS


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ConflictDetector:
    """
    Read-only conflict checks over a GraphStorage.

    Args:
        storage: Graph storage to scan
        stale_warning_days: WIP age (days) that produces a warning
        stale_error_days: WIP age (days) that produces an error
        overlap_threshold: Minimum SIMILAR_TO confidence reported as overlap

    Raises:
        ValueError: If stale_warning_days > stale_error_days, or
            overlap_threshold is outside [0, 1]
    """

    def __init__(
        self,
        storage: "GraphStorage",
        *,
        stale_warning_days: float = 7,
        stale_error_days: float = 14,
        overlap_threshold: float = 0.85,
    ) -> None:
        if stale_warning_days > stale_error_days:
            raise ValueError(
                f"stale_warning_days ({stale_warning_days}) must not exceed "
                f"stale_error_days ({stale_error_days})"
            )
        if not 0.0 <= overlap_threshold <= 1.0:
            raise ValueError(f"overlap_threshold must be in [0, 1], got {overlap_threshold}")

        self.storage = storage
        self.stale_warning_days = stale_warning_days
        self.stale_error_days = stale_error_days
        self.overlap_threshold = overlap_threshold

    async def _load(self, entity_ids: set[int]) -> dict[int, Entity]:
        ordered = sorted(entity_ids)
        found = await asyncio.gather(*(self.storage.get_entity_by_id(i) for i in ordered))
        return {i: e for i, e in zip(ordered, found) if e is not None}

    async def detect_all(self, now: datetime | None = None) -> list[ConflictReport]:
        """Run every check; reports are grouped by check in the order listed above."""
        reports = [
            *await self.detect_file_contention(),
            *await self.detect_feature_overlap(),
            *await self.detect_circular_dependencies(),
            *await self.detect_stale_wip(now),
        ]
        logger.info(f"Conflict scan found {len(reports)} conflicts")
        return reports

    async def detect_file_contention(self) -> list[ConflictReport]:
        rels = await self.storage.get_relationships_by_type(RelationType.MODIFIES.value)

        by_file: dict[int, list[int]] = defaultdict(list)
        for rel in rels:
            by_file[rel.target_id].append(rel.source_id)
        entities = await self._load({r.source_id for r in rels} | {r.target_id for r in rels})

        reports: list[ConflictReport] = []
        for file_id, source_ids in by_file.items():
            if len(source_ids) < 2:
                continue
            wip = [entities[s] for s in source_ids if s in entities and _is_wip(entities[s])]
            if len(wip) < 2:
                continue

            file_entity = entities.get(file_id)
            file_cid = file_entity.canonical_id if file_entity else f"unknown:{file_id}"
            file_name = file_entity.name if file_entity else file_cid
            agents = [e.canonical_id for e in wip]
            reports.append(ConflictReport(
                type=ConflictType.FILE_CONTENTION,
                severity=ConflictSeverity.ERROR,
                message=(
                    f'File "{file_name}" is modified by {len(wip)} WIP agents: '
                    f"{', '.join(agents)}"
                ),
                entities=[file_cid, *agents],
                metadata={"file_id": file_cid, "agent_count": len(wip)},
            ))
        return reports

    async def detect_feature_overlap(self) -> list[ConflictReport]:
        rels = [
            rel
            for rel in await self.storage.get_relationships_by_type(RelationType.SIMILAR_TO.value)
            if rel.confidence >= self.overlap_threshold
        ]
        entities = await self._load({r.source_id for r in rels} | {r.target_id for r in rels})

        reports: list[ConflictReport] = []
        for rel in rels:
            source = entities.get(rel.source_id)
            target = entities.get(rel.target_id)
            if source is None or target is None:
                continue
            reports.append(ConflictReport(
                type=ConflictType.FEATURE_OVERLAP,
                severity=ConflictSeverity.WARNING,
                message=(
                    f'Features "{source.name}" and "{target.name}" are '
                    f"{rel.confidence * 100:.0f}% similar"
                ),
                entities=[source.canonical_id, target.canonical_id],
                metadata={"confidence": rel.confidence},
            ))
        return reports

    async def detect_circular_dependencies(self) -> list[ConflictReport]:
        """
        One report per distinct DEPENDS_ON cycle.

        Depth-first search with white/gray/black colouring; a back edge to a
        gray node closes a cycle. Rotations of the same cycle are reported
        once.
        """
        rels = await self.storage.get_relationships_by_type(RelationType.DEPENDS_ON.value)

        adjacency: dict[int, list[int]] = defaultdict(list)
        for rel in rels:
            adjacency[rel.source_id].append(rel.target_id)
        entities = await self._load({r.source_id for r in rels} | {r.target_id for r in rels})

        def cid(entity_id: int) -> str:
            entity = entities.get(entity_id)
            return entity.canonical_id if entity else f"unknown:{entity_id}"

        white, gray, black = 0, 1, 2
        color: dict[int, int] = defaultdict(int)
        seen: set[tuple[str, ...]] = set()
        reports: list[ConflictReport] = []

        def visit(node: int, path: list[int]) -> None:
            color[node] = gray
            for neighbor in adjacency.get(node, []):
                if color[neighbor] == gray:
                    cycle = [cid(i) for i in path[path.index(neighbor):]] + [cid(neighbor)]
                    key = tuple(sorted(cycle[:-1]))
                    if key not in seen:
                        seen.add(key)
                        reports.append(ConflictReport(
                            type=ConflictType.CIRCULAR_DEPENDENCY,
                            severity=ConflictSeverity.ERROR,
                            message=f"Circular dependency detected: {' -> '.join(cycle)}",
                            entities=cycle,
                        ))
                elif color[neighbor] == white:
                    visit(neighbor, [*path, neighbor])
            color[node] = black

        for node in list(adjacency):
            if color[node] == white:
                visit(node, [node])
        return reports

    async def detect_stale_wip(self, now: datetime | None = None) -> list[ConflictReport]:
        """
        WIP agents whose updated_at is at least stale_warning_days old.

        Args:
            now: Reference time (default: current UTC time)
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        reports: list[ConflictReport] = []
        for agent in await self.storage.get_entities_by_type(EntityType.AGENT.value):
            if not _is_wip(agent) or agent.updated_at is None:
                continue

            age = (now - _parse_timestamp(agent.updated_at)).total_seconds() / 86400
            if age >= self.stale_error_days:
                severity = ConflictSeverity.ERROR
            elif age >= self.stale_warning_days:
                severity = ConflictSeverity.WARNING
            else:
                continue

            days = math.floor(age)
            reports.append(ConflictReport(
                type=ConflictType.STALE_WIP,
                severity=severity,
                message=f'Agent "{agent.name}" ({agent.canonical_id}) has been WIP for {days} days',
                entities=[agent.canonical_id],
                metadata={"days_since_update": days},
            ))
        return reports
