"""Kinship engine — pure Python graph traversal.

Takes people + directed relationship records, builds an undirected adjacency
with direction-aware links and finds the shortest chain between two people
(e.g. "Emily is child of Sarah, Sarah is sibling of Mike").

No DB, no I/O — pure functions on in-memory snapshots. The adjacency is
rebuilt on every query; family graphs are small.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import date
from enum import Enum

logger = logging.getLogger("kinship_engine.family.engine")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> Gender:
        """Lenient conversion; anything unrecognised (including None) is UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class RelationshipType(str, Enum):
    FATHER = "FATHER"
    MOTHER = "MOTHER"
    SPOUSE = "SPOUSE"
    SIBLING = "SIBLING"


PARENT_TYPES = (RelationshipType.FATHER, RelationshipType.MOTHER)
SYMMETRIC_TYPES = (RelationshipType.SPOUSE, RelationshipType.SIBLING)


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    gender: Gender = Gender.UNKNOWN
    birth_date: date | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class Relationship:
    id: str
    type: RelationshipType  # FATHER/MOTHER: from=parent, to=child
    from_id: str
    to_id: str


# ---------------------------------------------------------------------------
# Links — what one traversed edge means, seen from the side we leave
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParentOf:
    role: RelationshipType

    @property
    def label(self) -> str:
        return f"is {self.role.value.lower()} of"


@dataclass(frozen=True)
class ChildOf:
    role: RelationshipType
    parent_name: str

    @property
    def label(self) -> str:
        return f"is child of ({self.role.value.lower()}: {self.parent_name})"


@dataclass(frozen=True)
class SpouseOf:
    @property
    def label(self) -> str:
        return "is spouse of"


@dataclass(frozen=True)
class SiblingOf:
    @property
    def label(self) -> str:
        return "is sibling of"


Link = ParentOf | ChildOf | SpouseOf | SiblingOf


@dataclass(frozen=True)
class AdjacencyEntry:
    neighbor_id: str
    link: Link
    relationship_id: str


@dataclass(frozen=True)
class PathSegment:
    """One person on a chain, plus the edge taken to reach the next one."""
    person: Person
    link: Link | None = None
    relationship_id: str | None = None

    @property
    def relationship_to_next(self) -> str | None:
        return self.link.label if self.link is not None else None


RelationshipPath = list[PathSegment]


@dataclass(frozen=True)
class PathHighlight:
    """Node and edge ids a renderer should emphasise for a chain."""
    person_ids: frozenset[str]
    relationship_ids: frozenset[str]


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------

class FamilyGraph:
    """In-memory undirected family graph built from one snapshot."""

    def __init__(self, people: list[Person], relationships: list[Relationship]):
        self._people: dict[str, Person] = {}
        for p in people:
            self._people.setdefault(p.id, p)

        self._adjacency: dict[str, list[AdjacencyEntry]] = {pid: [] for pid in self._people}

        for r in relationships:
            src = self._people.get(r.from_id)
            dst = self._people.get(r.to_id)
            if src is None or dst is None:
                logger.debug("Skipping relationship %s: dangling endpoint", r.id)
                continue
            if src.id == dst.id:
                logger.debug("Skipping relationship %s: self-edge", r.id)
                continue

            if r.type in PARENT_TYPES:
                self._link(src.id, dst.id, ParentOf(r.type), r.id)
                self._link(dst.id, src.id, ChildOf(r.type, src.name), r.id)
            elif r.type == RelationshipType.SPOUSE:
                self._link(src.id, dst.id, SpouseOf(), r.id)
                self._link(dst.id, src.id, SpouseOf(), r.id)
            elif r.type == RelationshipType.SIBLING:
                self._link(src.id, dst.id, SiblingOf(), r.id)
                self._link(dst.id, src.id, SiblingOf(), r.id)
            else:
                logger.debug("Skipping relationship %s: unknown type %r", r.id, r.type)

    def _link(self, from_id: str, to_id: str, link: Link, rel_id: str) -> None:
        self._adjacency[from_id].append(AdjacencyEntry(neighbor_id=to_id, link=link, relationship_id=rel_id))

    def get(self, pid: str) -> Person | None:
        return self._people.get(pid)

    def neighbors(self, pid: str) -> list[AdjacencyEntry]:
        return self._adjacency.get(pid, [])

    @property
    def adjacency(self) -> dict[str, list[AdjacencyEntry]]:
        return {pid: list(entries) for pid, entries in self._adjacency.items()}

    def find_path(self, start_id: str, end_id: str) -> RelationshipPath | None:
        """Breadth-first search for the fewest-hop chain from start to end.

        Neighbours are explored in adjacency insertion order, so among equally
        short chains the first one discovered wins.
        """
        start = self.get(start_id)
        if start is None or self.get(end_id) is None:
            return None
        if start_id == end_id:
            return [PathSegment(person=start)]

        # person id -> (previous person id, edge taken from it)
        came_from: dict[str, tuple[str, AdjacencyEntry] | None] = {start_id: None}
        queue: deque[str] = deque([start_id])

        while queue:
            pid = queue.popleft()
            if pid == end_id:
                return self._unwind(came_from, end_id)
            for entry in self.neighbors(pid):
                if entry.neighbor_id in came_from:
                    continue
                came_from[entry.neighbor_id] = (pid, entry)
                queue.append(entry.neighbor_id)

        return None

    def _unwind(
        self,
        came_from: dict[str, tuple[str, AdjacencyEntry] | None],
        end_id: str,
    ) -> RelationshipPath:
        path: RelationshipPath = [PathSegment(person=self._people[end_id])]
        step = came_from[end_id]
        while step is not None:
            prev_id, entry = step
            path.append(PathSegment(
                person=self._people[prev_id],
                link=entry.link,
                relationship_id=entry.relationship_id,
            ))
            step = came_from[prev_id]
        path.reverse()
        return path


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_adjacency(
    people: list[Person],
    relationships: list[Relationship],
) -> dict[str, list[AdjacencyEntry]]:
    """Map every person id to the edges leaving it, in insertion order."""
    return FamilyGraph(people, relationships).adjacency


def find_relationship_path(
    start_id: str,
    end_id: str,
    people: list[Person],
    relationships: list[Relationship],
) -> RelationshipPath | None:
    """Shortest chain between two people, or None when they are not connected."""
    return FamilyGraph(people, relationships).find_path(start_id, end_id)


def path_highlight(path: RelationshipPath | None) -> PathHighlight:
    if not path:
        return PathHighlight(person_ids=frozenset(), relationship_ids=frozenset())
    return PathHighlight(
        person_ids=frozenset(seg.person.id for seg in path),
        relationship_ids=frozenset(
            seg.relationship_id for seg in path if seg.relationship_id is not None
        ),
    )
