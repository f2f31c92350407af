"""Relationship classifier — names a chain when its shape is a known pattern.

Only direct edges and one-intermediate chains are named. Anything longer
(cousins, great-grandparents, ...) is a valid chain that stays unnamed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kinship.family.engine import (
    ChildOf,
    Gender,
    Link,
    ParentOf,
    Person,
    RelationshipPath,
    SiblingOf,
    SpouseOf,
)


class Hop(str, Enum):
    PARENT_OF = "parent_of"
    CHILD_OF = "child_of"
    SPOUSE_OF = "spouse_of"
    SIBLING_OF = "sibling_of"


@dataclass(frozen=True)
class Kinship:
    """A named relationship: `subject` is `term` of `relative`."""
    term: str
    subject: Person
    relative: Person
    sentence: str


# (male, female, neutral)
_TERMS: dict[tuple[Hop, Hop], tuple[str, str, str]] = {
    (Hop.PARENT_OF, Hop.PARENT_OF): ("grandfather", "grandmother", "grandparent"),
    (Hop.CHILD_OF, Hop.CHILD_OF): ("grandson", "granddaughter", "grandchild"),
    (Hop.PARENT_OF, Hop.SPOUSE_OF): ("father-in-law", "mother-in-law", "parent-in-law"),
    (Hop.SPOUSE_OF, Hop.CHILD_OF): ("son-in-law", "daughter-in-law", "child-in-law"),
    (Hop.SIBLING_OF, Hop.PARENT_OF): ("uncle", "aunt", "aunt/uncle"),
    (Hop.CHILD_OF, Hop.SIBLING_OF): ("nephew", "niece", "nephew/niece"),
}


def hop_of(link: Link | None) -> Hop | None:
    if isinstance(link, ParentOf):
        return Hop.PARENT_OF
    if isinstance(link, ChildOf):
        return Hop.CHILD_OF
    if isinstance(link, SpouseOf):
        return Hop.SPOUSE_OF
    if isinstance(link, SiblingOf):
        return Hop.SIBLING_OF
    return None


def gendered_term(pattern: tuple[Hop, Hop], gender: Gender | str | None) -> str | None:
    """Pick the term for a two-hop pattern; other/unknown/missing gender gets the neutral one."""
    terms = _TERMS.get(pattern)
    if terms is None:
        return None
    male, female, neutral = terms
    g = Gender.parse(gender)
    if g == Gender.MALE:
        return male
    if g == Gender.FEMALE:
        return female
    return neutral


def _direct(subject: Person, relative: Person, link: Link) -> Kinship:
    if isinstance(link, ChildOf):
        return Kinship("child", subject, relative, f"{subject.name} is child of {relative.name}.")
    if isinstance(link, SiblingOf):
        return Kinship("sibling", subject, relative, f"{subject.name} and {relative.name} are siblings.")
    if isinstance(link, ParentOf):
        term = link.role.value.lower()
    else:
        term = "spouse"
    return Kinship(term, subject, relative, f"{subject.name} {link.label} {relative.name}.")


def classify(path: RelationshipPath | None, people: list[Person] | None = None) -> Kinship | None:
    """Name the relationship of the first person on `path` to the last one.

    When `people` is given, the endpoints are re-read from that snapshot by id
    so the name and gender are current.
    """
    if not path or len(path) < 2:
        return None

    subject = path[0].person
    relative = path[-1].person
    if people:
        by_id = {p.id: p for p in people}
        subject = by_id.get(subject.id, subject)
        relative = by_id.get(relative.id, relative)

    if len(path) == 2:
        link = path[0].link
        if link is None:
            return None
        return _direct(subject, relative, link)

    if len(path) == 3:
        first, second = hop_of(path[0].link), hop_of(path[1].link)
        if first is None or second is None:
            return None
        term = gendered_term((first, second), subject.gender)
        if term is None:
            return None
        return Kinship(term, subject, relative, f"{subject.name} is {term} of {relative.name}.")

    return None


def derive_complex_relationship(
    path: RelationshipPath | None,
    people: list[Person] | None = None,
) -> str | None:
    """One-line summary of a chain, e.g. "John Doe is grandfather of Emily Poe."."""
    kinship = classify(path, people)
    return kinship.sentence if kinship else None
