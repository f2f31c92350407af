"""Pydantic models for the family tree API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

GenderIn = Literal["male", "female", "other", "unknown"]
RelationshipTypeIn = Literal["FATHER", "MOTHER", "SPOUSE", "SIBLING"]


# ---------------------------------------------------------------------------
# Family CRUD
# ---------------------------------------------------------------------------

class CreateFamilyIn(BaseModel):
    name: str


class FamilyOut(BaseModel):
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# People CRUD
# ---------------------------------------------------------------------------

class CreatePersonIn(BaseModel):
    name: str
    gender: GenderIn = "unknown"
    birth_date: date | None = None
    photo_url: str | None = None


class UpdatePersonIn(BaseModel):
    name: str | None = None
    gender: GenderIn | None = None
    birth_date: date | None = None
    photo_url: str | None = None


class PersonOut(BaseModel):
    id: UUID
    family_id: UUID
    name: str
    gender: str
    birth_date: date | None = None
    photo_url: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

class RelationshipIn(BaseModel):
    type: RelationshipTypeIn  # FATHER/MOTHER: from is the parent, to is the child
    from_id: UUID
    to_id: UUID


class RelationshipOut(BaseModel):
    id: UUID
    family_id: UUID
    type: str
    from_id: UUID
    to_id: UUID
    created_at: datetime


# ---------------------------------------------------------------------------
# Composite tree view
# ---------------------------------------------------------------------------

class FamilyTreeOut(BaseModel):
    family: FamilyOut
    people: list[PersonOut]
    relationships: list[RelationshipOut]


# ---------------------------------------------------------------------------
# Chain finder
# ---------------------------------------------------------------------------

class ChainPersonOut(BaseModel):
    id: str
    name: str
    gender: str
    birth_date: date | None = None
    photo_url: str | None = None


class ChainSegmentOut(BaseModel):
    person: ChainPersonOut
    relationship_to_next: str | None = None  # e.g. "is child of (mother: Jane Smith)"
    relationship_kind: str | None = None  # parent_of, child_of, spouse_of, sibling_of
    relationship_id: str | None = None


class HighlightOut(BaseModel):
    person_ids: list[str]
    relationship_ids: list[str]


class ChainOut(BaseModel):
    found: bool
    path: list[ChainSegmentOut] = []
    hops: int | None = None
    term: str | None = None  # canonical kinship term, e.g. "father-in-law"
    summary: str | None = None
    message: str | None = None
    highlight: HighlightOut = HighlightOut(person_ids=[], relationship_ids=[])
