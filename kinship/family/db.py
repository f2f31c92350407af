"""Database query helpers for family tree tables."""

from __future__ import annotations

import uuid
from datetime import date

import asyncpg

from kinship.db import get_pool
from kinship.family.rules import RuleViolation

_PERSON_COLS = "id, family_id, name, gender, birth_date, photo_url, created_at, updated_at"
_REL_COLS = "id, family_id, type, from_id, to_id, created_at"


# ---------------------------------------------------------------------------
# Unique-index violations → editor messages
# ---------------------------------------------------------------------------

def name_violation(name: str) -> RuleViolation:
    return RuleViolation(f'Another person with name "{name}" already exists.')


def relationship_violation(constraint_name: str | None, rel_type: str) -> RuleViolation:
    """Message for a relationship insert/update rejected by a unique index."""
    if constraint_name == "family_relationships_parent_uq":
        return RuleViolation(f"This person already has a {rel_type.lower()} assigned.")
    return RuleViolation("This relationship already exists.")


# ---------------------------------------------------------------------------
# Families
# ---------------------------------------------------------------------------

async def create_family(name: str) -> asyncpg.Record:
    p = get_pool()
    fid = uuid.uuid4()
    return await p.fetchrow(
        "INSERT INTO families (id, name) VALUES ($1, $2) "
        "RETURNING id, name, created_at, updated_at",
        fid, name,
    )


async def get_family(family_id: str) -> asyncpg.Record | None:
    p = get_pool()
    return await p.fetchrow(
        "SELECT id, name, created_at, updated_at FROM families WHERE id = $1",
        family_id,
    )


async def list_families() -> list[asyncpg.Record]:
    p = get_pool()
    return await p.fetch(
        "SELECT id, name, created_at, updated_at FROM families ORDER BY created_at DESC"
    )


async def delete_family(family_id: str) -> bool:
    p = get_pool()
    result = await p.execute("DELETE FROM families WHERE id = $1", family_id)
    return result == "DELETE 1"


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

async def create_person(
    family_id: str,
    name: str,
    gender: str = "unknown",
    birth_date: date | None = None,
    photo_url: str | None = None,
) -> asyncpg.Record:
    p = get_pool()
    pid = uuid.uuid4()
    try:
        return await p.fetchrow(
            "INSERT INTO family_people (id, family_id, name, gender, birth_date, photo_url) "
            "VALUES ($1, $2, $3, $4, $5, $6) "
            f"RETURNING {_PERSON_COLS}",
            pid, family_id, name, gender, birth_date, photo_url,
        )
    except asyncpg.UniqueViolationError as exc:
        raise name_violation(name) from exc


async def update_person(person_id: str, **kwargs) -> asyncpg.Record | None:
    """Update the given fields. birth_date and photo_url may be cleared with None."""
    p = get_pool()
    allowed = {"name", "gender", "birth_date", "photo_url"}
    clearable = {"birth_date", "photo_url"}
    sets: list[str] = []
    params: list = []
    idx = 1

    for key, val in kwargs.items():
        if key not in allowed:
            continue
        if val is None and key not in clearable:
            continue
        sets.append(f"{key} = ${idx}")
        params.append(val)
        idx += 1

    if not sets:
        return await get_person(person_id)

    params.append(person_id)
    sql = (
        f"UPDATE family_people SET {', '.join(sets)}, updated_at = now() "
        f"WHERE id = ${idx} "
        f"RETURNING {_PERSON_COLS}"
    )
    try:
        return await p.fetchrow(sql, *params)
    except asyncpg.UniqueViolationError as exc:
        raise name_violation(kwargs.get("name") or "") from exc


async def get_person(person_id: str) -> asyncpg.Record | None:
    p = get_pool()
    return await p.fetchrow(
        f"SELECT {_PERSON_COLS} FROM family_people WHERE id = $1",
        person_id,
    )


async def delete_person(person_id: str) -> bool:
    """Delete a person; their relationships go with them (ON DELETE CASCADE)."""
    p = get_pool()
    result = await p.execute("DELETE FROM family_people WHERE id = $1", person_id)
    return result == "DELETE 1"


async def list_people(family_id: str) -> list[asyncpg.Record]:
    p = get_pool()
    return await p.fetch(
        f"SELECT {_PERSON_COLS} FROM family_people WHERE family_id = $1 ORDER BY created_at",
        family_id,
    )


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

async def create_relationship(
    family_id: str,
    rel_type: str,
    from_id: str,
    to_id: str,
) -> asyncpg.Record:
    p = get_pool()
    rid = uuid.uuid4()
    try:
        return await p.fetchrow(
            "INSERT INTO family_relationships (id, family_id, type, from_id, to_id) "
            "VALUES ($1, $2, $3, $4, $5) "
            f"RETURNING {_REL_COLS}",
            rid, family_id, rel_type, from_id, to_id,
        )
    except asyncpg.UniqueViolationError as exc:
        raise relationship_violation(exc.constraint_name, rel_type) from exc


async def get_relationship(rel_id: str) -> asyncpg.Record | None:
    p = get_pool()
    return await p.fetchrow(
        f"SELECT {_REL_COLS} FROM family_relationships WHERE id = $1",
        rel_id,
    )


async def update_relationship(
    rel_id: str,
    rel_type: str,
    from_id: str,
    to_id: str,
) -> asyncpg.Record | None:
    """Rewrite a relationship in place; it keeps its id and position in the listing."""
    p = get_pool()
    try:
        return await p.fetchrow(
            "UPDATE family_relationships SET type = $1, from_id = $2, to_id = $3 "
            "WHERE id = $4 "
            f"RETURNING {_REL_COLS}",
            rel_type, from_id, to_id, rel_id,
        )
    except asyncpg.UniqueViolationError as exc:
        raise relationship_violation(exc.constraint_name, rel_type) from exc


async def delete_relationship(rel_id: str) -> bool:
    p = get_pool()
    result = await p.execute("DELETE FROM family_relationships WHERE id = $1", rel_id)
    return result == "DELETE 1"


async def list_relationships(family_id: str) -> list[asyncpg.Record]:
    """Relationships in creation order — the order the engine explores them in."""
    p = get_pool()
    return await p.fetch(
        f"SELECT {_REL_COLS} FROM family_relationships WHERE family_id = $1 ORDER BY created_at, id",
        family_id,
    )
