"""Editing rules for people and relationships.

Checked by the routes before anything is written. The engine itself tolerates
whatever ends up stored; these rules only keep the editor's data tidy.
"""

from __future__ import annotations

from kinship.family.engine import (
    PARENT_TYPES,
    SYMMETRIC_TYPES,
    Person,
    Relationship,
    RelationshipType,
)


class RuleViolation(ValueError):
    """An edit the family editor refuses; the message is shown to the user."""


def check_relationship(
    from_id: str,
    to_id: str,
    rel_type: RelationshipType,
    existing: list[Relationship],
    ignore_id: str | None = None,
) -> None:
    """Raise RuleViolation if the relationship may not be added (or edited into place).

    `ignore_id` is the id of the relationship being edited, which must not
    conflict with itself.
    """
    if from_id == to_id:
        raise RuleViolation("Cannot form a relationship with oneself.")

    others = [r for r in existing if r.id != ignore_id]

    for r in others:
        if r.type != rel_type:
            continue
        if r.from_id == from_id and r.to_id == to_id:
            raise RuleViolation("This relationship already exists.")
        if rel_type in SYMMETRIC_TYPES and r.from_id == to_id and r.to_id == from_id:
            raise RuleViolation("This relationship already exists.")

    if rel_type in PARENT_TYPES:
        for r in others:
            if r.type == rel_type and r.to_id == to_id and r.from_id != from_id:
                raise RuleViolation(
                    f"This person already has a {rel_type.value.lower()} assigned."
                )


def normalize_name(name: str | None) -> str:
    return (name or "").strip()


def check_person_name(
    name: str | None,
    existing: list[Person],
    ignore_id: str | None = None,
) -> str:
    """Return the trimmed name, or raise if it is empty or already taken (case-insensitive)."""
    cleaned = normalize_name(name)
    if not cleaned:
        raise RuleViolation("Name is required.")
    folded = cleaned.lower()
    for p in existing:
        if p.id != ignore_id and p.name.strip().lower() == folded:
            raise RuleViolation(f'Another person with name "{cleaned}" already exists.')
    return cleaned
