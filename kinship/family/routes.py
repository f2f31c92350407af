"""Family tree API endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from kinship.family import db as fdb
from kinship.family.classifier import classify, hop_of
from kinship.family.engine import (
    Gender,
    Person,
    Relationship,
    RelationshipPath,
    RelationshipType,
    find_relationship_path,
    path_highlight,
)
from kinship.family.models import (
    ChainOut,
    ChainPersonOut,
    ChainSegmentOut,
    CreateFamilyIn,
    CreatePersonIn,
    FamilyOut,
    FamilyTreeOut,
    HighlightOut,
    PersonOut,
    RelationshipIn,
    RelationshipOut,
    UpdatePersonIn,
)
from kinship.family.rules import RuleViolation, check_person_name, check_relationship

logger = logging.getLogger("kinship_engine.family.routes")

router = APIRouter(prefix="/api/v1/family", tags=["family"])

NO_PATH_MESSAGE = "No relationship path found between the selected individuals."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _family_out(row) -> FamilyOut:
    return FamilyOut(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _person_out(row) -> PersonOut:
    return PersonOut(
        id=row["id"],
        family_id=row["family_id"],
        name=row["name"],
        gender=row["gender"],
        birth_date=row["birth_date"],
        photo_url=row["photo_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _rel_out(row) -> RelationshipOut:
    return RelationshipOut(
        id=row["id"],
        family_id=row["family_id"],
        type=row["type"],
        from_id=row["from_id"],
        to_id=row["to_id"],
        created_at=row["created_at"],
    )


def _to_person(row) -> Person:
    return Person(
        id=str(row["id"]),
        name=row["name"],
        gender=Gender.parse(row["gender"]),
        birth_date=row["birth_date"],
        photo_url=row["photo_url"],
    )


def _to_relationship(row) -> Relationship | None:
    try:
        rel_type = RelationshipType(row["type"])
    except ValueError:
        logger.warning("Ignoring relationship %s with unknown type %r", row["id"], row["type"])
        return None
    return Relationship(
        id=str(row["id"]),
        type=rel_type,
        from_id=str(row["from_id"]),
        to_id=str(row["to_id"]),
    )


async def _snapshot(family_id: str) -> tuple[list[Person], list[Relationship]]:
    """Read the family once and freeze it into engine values."""
    people = [_to_person(r) for r in await fdb.list_people(family_id)]
    rels = [
        rel
        for rel in (_to_relationship(r) for r in await fdb.list_relationships(family_id))
        if rel is not None
    ]
    return people, rels


async def _require_family(family_id: str):
    fam = await fdb.get_family(family_id)
    if fam is None:
        raise HTTPException(404, "Family not found")
    return fam


async def _build_tree(family_id: str) -> FamilyTreeOut:
    """Build the full tree response for a family."""
    fam = await _require_family(family_id)
    people = await fdb.list_people(family_id)
    rels = await fdb.list_relationships(family_id)
    return FamilyTreeOut(
        family=_family_out(fam),
        people=[_person_out(p) for p in people],
        relationships=[_rel_out(r) for r in rels],
    )


def _link_kind(link) -> str | None:
    hop = hop_of(link)
    return hop.value if hop else None


def _chain_out(path: RelationshipPath, people: list[Person]) -> ChainOut:
    segments = [
        ChainSegmentOut(
            person=ChainPersonOut(
                id=seg.person.id,
                name=seg.person.name,
                gender=seg.person.gender.value,
                birth_date=seg.person.birth_date,
                photo_url=seg.person.photo_url,
            ),
            relationship_to_next=seg.relationship_to_next,
            relationship_kind=_link_kind(seg.link),
            relationship_id=seg.relationship_id,
        )
        for seg in path
    ]
    highlight = path_highlight(path)

    if len(path) == 1:
        term = None
        summary = f"{path[0].person.name} is themselves."
    else:
        kinship = classify(path, people)
        term = kinship.term if kinship else None
        summary = kinship.sentence if kinship else None

    return ChainOut(
        found=True,
        path=segments,
        hops=len(path) - 1,
        term=term,
        summary=summary,
        highlight=HighlightOut(
            person_ids=sorted(highlight.person_ids),
            relationship_ids=sorted(highlight.relationship_ids),
        ),
    )


# ---------------------------------------------------------------------------
# Family CRUD
# ---------------------------------------------------------------------------

@router.post("", status_code=201)
async def create_family(body: CreateFamilyIn) -> FamilyOut:
    """Create a new family."""
    name = body.name.strip()
    if not name:
        raise HTTPException(400, "Family name is required")
    row = await fdb.create_family(name)
    logger.info("Created family %s (%s)", row["id"], name)
    return _family_out(row)


@router.get("")
async def list_families() -> list[FamilyOut]:
    """List all families."""
    rows = await fdb.list_families()
    return [_family_out(r) for r in rows]


@router.get("/{family_id}")
async def get_family(family_id: UUID) -> FamilyTreeOut:
    """Get a family with full tree."""
    return await _build_tree(str(family_id))


@router.delete("/{family_id}")
async def delete_family(family_id: UUID) -> dict:
    """Delete a family and all its data."""
    deleted = await fdb.delete_family(str(family_id))
    if not deleted:
        raise HTTPException(404, "Family not found")
    logger.info("Deleted family %s", family_id)
    return {"deleted": True}


# ---------------------------------------------------------------------------
# People CRUD
# ---------------------------------------------------------------------------

@router.post("/{family_id}/people", status_code=201)
async def create_person(family_id: UUID, body: CreatePersonIn) -> PersonOut:
    """Add a person to the family."""
    fid = str(family_id)
    await _require_family(fid)
    people, _ = await _snapshot(fid)
    try:
        name = check_person_name(body.name, people)
    except RuleViolation as exc:
        logger.warning("Rejected new person in %s: %s", fid, exc)
        raise HTTPException(409, str(exc)) from exc
    try:
        row = await fdb.create_person(
            family_id=fid,
            name=name,
            gender=body.gender,
            birth_date=body.birth_date,
            photo_url=body.photo_url,
        )
    except RuleViolation as exc:
        logger.warning("Rejected new person in %s at write: %s", fid, exc)
        raise HTTPException(409, str(exc)) from exc
    logger.info("Added person %s to family %s", row["id"], fid)
    return _person_out(row)


@router.patch("/{family_id}/people/{person_id}")
async def update_person(family_id: UUID, person_id: UUID, body: UpdatePersonIn) -> PersonOut:
    """Update a person's details."""
    fid, pid = str(family_id), str(person_id)
    existing = await fdb.get_person(pid)
    if existing is None or str(existing["family_id"]) != fid:
        raise HTTPException(404, "Person not found in this family")

    # Only fields the client sent; an explicit null clears birth_date / photo_url
    fields = body.model_dump(exclude_unset=True)
    if fields.get("name") is not None:
        people, _ = await _snapshot(fid)
        try:
            fields["name"] = check_person_name(fields["name"], people, ignore_id=pid)
        except RuleViolation as exc:
            logger.warning("Rejected rename of %s: %s", pid, exc)
            raise HTTPException(409, str(exc)) from exc

    try:
        row = await fdb.update_person(pid, **fields)
    except RuleViolation as exc:
        logger.warning("Rejected update of %s at write: %s", pid, exc)
        raise HTTPException(409, str(exc)) from exc
    if row is None:
        raise HTTPException(404, "Person not found")
    logger.info("Updated person %s (%s)", pid, ", ".join(sorted(fields)) or "no changes")
    return _person_out(row)


@router.delete("/{family_id}/people/{person_id}")
async def delete_person(family_id: UUID, person_id: UUID) -> dict:
    """Delete a person and every relationship they take part in."""
    existing = await fdb.get_person(str(person_id))
    if existing is None or str(existing["family_id"]) != str(family_id):
        raise HTTPException(404, "Person not found")
    deleted = await fdb.delete_person(str(person_id))
    if not deleted:
        raise HTTPException(404, "Person not found")
    logger.info("Deleted person %s from family %s", person_id, family_id)
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

async def _validated_relationship(
    fid: str,
    body: RelationshipIn,
    ignore_id: str | None = None,
) -> tuple[str, str, RelationshipType]:
    people, rels = await _snapshot(fid)
    known = {p.id for p in people}
    from_id, to_id = str(body.from_id), str(body.to_id)
    if from_id not in known or to_id not in known:
        raise HTTPException(404, "Person not found in this family")

    rel_type = RelationshipType(body.type)
    try:
        check_relationship(from_id, to_id, rel_type, rels, ignore_id=ignore_id)
    except RuleViolation as exc:
        logger.warning("Rejected %s %s -> %s in %s: %s", rel_type.value, from_id, to_id, fid, exc)
        raise HTTPException(409, str(exc)) from exc
    return from_id, to_id, rel_type


@router.post("/{family_id}/relationships", status_code=201)
async def create_relationship(family_id: UUID, body: RelationshipIn) -> RelationshipOut:
    """Add a relationship between two people."""
    fid = str(family_id)
    await _require_family(fid)
    from_id, to_id, rel_type = await _validated_relationship(fid, body)
    try:
        row = await fdb.create_relationship(
            family_id=fid,
            rel_type=rel_type.value,
            from_id=from_id,
            to_id=to_id,
        )
    except RuleViolation as exc:
        logger.warning("Rejected %s %s -> %s in %s at write: %s", rel_type.value, from_id, to_id, fid, exc)
        raise HTTPException(409, str(exc)) from exc
    logger.info("Added %s %s -> %s in family %s", rel_type.value, from_id, to_id, fid)
    return _rel_out(row)


async def _require_relationship(fid: str, rid: str):
    await _require_family(fid)
    row = await fdb.get_relationship(rid)
    if row is None or str(row["family_id"]) != fid:
        raise HTTPException(404, "Relationship not found")
    return row


@router.put("/{family_id}/relationships/{rel_id}")
async def update_relationship(family_id: UUID, rel_id: UUID, body: RelationshipIn) -> RelationshipOut:
    """Change the people or the type of an existing relationship."""
    fid, rid = str(family_id), str(rel_id)
    await _require_relationship(fid, rid)
    from_id, to_id, rel_type = await _validated_relationship(fid, body, ignore_id=rid)
    try:
        row = await fdb.update_relationship(rid, rel_type.value, from_id, to_id)
    except RuleViolation as exc:
        logger.warning("Rejected update of relationship %s: %s", rid, exc)
        raise HTTPException(409, str(exc)) from exc
    if row is None:
        raise HTTPException(404, "Relationship not found")
    logger.info("Updated relationship %s to %s %s -> %s", rid, rel_type.value, from_id, to_id)
    return _rel_out(row)


@router.delete("/{family_id}/relationships/{rel_id}")
async def delete_relationship(family_id: UUID, rel_id: UUID) -> dict:
    """Delete a relationship."""
    fid, rid = str(family_id), str(rel_id)
    await _require_relationship(fid, rid)
    deleted = await fdb.delete_relationship(rid)
    if not deleted:
        raise HTTPException(404, "Relationship not found")
    logger.info("Deleted relationship %s from family %s", rid, fid)
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Tree + chain views
# ---------------------------------------------------------------------------

@router.get("/{family_id}/tree")
async def get_tree(family_id: UUID) -> FamilyTreeOut:
    """Get the full family tree."""
    return await _build_tree(str(family_id))


@router.get("/{family_id}/chain")
async def find_chain(
    family_id: UUID,
    from_id: UUID = Query(..., description="Person A (start of the chain)"),
    to_id: UUID = Query(..., description="Person B (end of the chain)"),
) -> ChainOut:
    """Find the shortest relationship chain between two people and name it if possible."""
    fid = str(family_id)
    await _require_family(fid)
    people, rels = await _snapshot(fid)
    known = {p.id for p in people}
    start, end = str(from_id), str(to_id)
    if start not in known or end not in known:
        raise HTTPException(404, "Person not found in this family")

    path = find_relationship_path(start, end, people, rels)
    if path is None:
        logger.info("No chain between %s and %s in family %s", start, end, fid)
        return ChainOut(found=False, message=NO_PATH_MESSAGE)
    return _chain_out(path, people)
