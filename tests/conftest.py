"""Pytest fixtures for kinship-engine tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import pytest

from kinship.family import db as family_db
from kinship.family.engine import Gender, Person, Relationship, RelationshipType

F, M, SP, SIB = (
    RelationshipType.FATHER,
    RelationshipType.MOTHER,
    RelationshipType.SPOUSE,
    RelationshipType.SIBLING,
)


# ---------------------------------------------------------------------------
# Engine snapshots
# ---------------------------------------------------------------------------

@pytest.fixture
def people() -> list[Person]:
    """The Doe family: John + Jane with three children, Sarah married to Robert."""
    return [
        Person("1", "John Doe", Gender.MALE, date(1970, 5, 15)),
        Person("2", "Jane Smith", Gender.FEMALE, date(1972, 8, 20)),
        Person("3", "Mike Doe", Gender.MALE, date(1995, 1, 10)),
        Person("4", "Sarah Doe", Gender.FEMALE, date(1998, 11, 25)),
        Person("5", "Robert Roe", Gender.MALE, date(1996, 7, 1)),
        Person("6", "Emily Poe", Gender.FEMALE, date(2020, 3, 3)),
        Person("7", "Chris Doe", Gender.MALE, date(1992, 6, 1)),
    ]


@pytest.fixture
def relationships() -> list[Relationship]:
    return [
        Relationship("r1", SP, "1", "2"),
        Relationship("r2", F, "1", "3"),
        Relationship("r3", F, "1", "4"),
        Relationship("r9", F, "1", "7"),
        Relationship("r4", M, "2", "3"),
        Relationship("r5", M, "2", "4"),
        Relationship("r10", M, "2", "7"),
        Relationship("r6", SP, "4", "5"),
        Relationship("r7", F, "5", "6"),
        Relationship("r8", M, "4", "6"),
        Relationship("s1", SIB, "3", "4"),
        Relationship("s2", SIB, "3", "7"),
        Relationship("s3", SIB, "4", "7"),
    ]


# ---------------------------------------------------------------------------
# In-memory stand-in for kinship.family.db
# ---------------------------------------------------------------------------

def _now() -> datetime:
    return datetime.now(timezone.utc)


class FakeFamilyStore:
    """Same call signatures as kinship.family.db, backed by dicts."""

    def __init__(self) -> None:
        self.families: dict[str, dict] = {}
        self.people: dict[str, dict] = {}
        self.relationships: dict[str, dict] = {}
        # Raised by the next write, as the unique indexes do for a concurrent edit
        self.write_conflict: Exception | None = None

    def _check_write(self) -> None:
        if self.write_conflict is not None:
            exc, self.write_conflict = self.write_conflict, None
            raise exc

    async def create_family(self, name):
        row = {"id": uuid4(), "name": name, "created_at": _now(), "updated_at": _now()}
        self.families[str(row["id"])] = row
        return row

    async def get_family(self, family_id):
        return self.families.get(str(family_id))

    async def list_families(self):
        return list(reversed(self.families.values()))

    async def delete_family(self, family_id):
        if self.families.pop(str(family_id), None) is None:
            return False
        self.people = {k: v for k, v in self.people.items() if str(v["family_id"]) != str(family_id)}
        self.relationships = {
            k: v for k, v in self.relationships.items() if str(v["family_id"]) != str(family_id)
        }
        return True

    async def create_person(self, family_id, name, gender="unknown", birth_date=None, photo_url=None):
        self._check_write()
        row = {
            "id": uuid4(),
            "family_id": UUID(str(family_id)),
            "name": name,
            "gender": gender,
            "birth_date": birth_date,
            "photo_url": photo_url,
            "created_at": _now(),
            "updated_at": _now(),
        }
        self.people[str(row["id"])] = row
        return row

    async def update_person(self, person_id, **kwargs):
        self._check_write()
        row = self.people.get(str(person_id))
        if row is None:
            return None
        for key, val in kwargs.items():
            if val is not None or key in ("birth_date", "photo_url"):
                row[key] = val
        row["updated_at"] = _now()
        return row

    async def get_person(self, person_id):
        return self.people.get(str(person_id))

    async def delete_person(self, person_id):
        if self.people.pop(str(person_id), None) is None:
            return False
        self.relationships = {
            k: v for k, v in self.relationships.items()
            if str(v["from_id"]) != str(person_id) and str(v["to_id"]) != str(person_id)
        }
        return True

    async def list_people(self, family_id):
        return [p for p in self.people.values() if str(p["family_id"]) == str(family_id)]

    async def create_relationship(self, family_id, rel_type, from_id, to_id):
        self._check_write()
        row = {
            "id": uuid4(),
            "family_id": UUID(str(family_id)),
            "type": rel_type,
            "from_id": UUID(str(from_id)),
            "to_id": UUID(str(to_id)),
            "created_at": _now(),
        }
        self.relationships[str(row["id"])] = row
        return row

    async def get_relationship(self, rel_id):
        return self.relationships.get(str(rel_id))

    async def update_relationship(self, rel_id, rel_type, from_id, to_id):
        self._check_write()
        row = self.relationships.get(str(rel_id))
        if row is None:
            return None
        row.update(type=rel_type, from_id=UUID(str(from_id)), to_id=UUID(str(to_id)))
        return row

    async def delete_relationship(self, rel_id):
        return self.relationships.pop(str(rel_id), None) is not None

    async def list_relationships(self, family_id):
        return [r for r in self.relationships.values() if str(r["family_id"]) == str(family_id)]


_STORE_FUNCS = (
    "create_family", "get_family", "list_families", "delete_family",
    "create_person", "update_person", "get_person", "delete_person", "list_people",
    "create_relationship", "get_relationship", "update_relationship", "delete_relationship",
    "list_relationships",
)


@pytest.fixture
def store(monkeypatch) -> FakeFamilyStore:
    fake = FakeFamilyStore()
    for name in _STORE_FUNCS:
        monkeypatch.setattr(family_db, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(store):
    """TestClient without the lifespan, so no database pool is opened."""
    from fastapi.testclient import TestClient

    from kinship.app import app

    return TestClient(app)
