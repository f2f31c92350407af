"""Tests for the family editor's rules."""

from __future__ import annotations

import pytest

from kinship.db import SCHEMA_SQL
from kinship.family.db import name_violation, relationship_violation
from kinship.family.engine import Person, Relationship, RelationshipType
from kinship.family.rules import RuleViolation, check_person_name, check_relationship

F, M, SP, SIB = (
    RelationshipType.FATHER,
    RelationshipType.MOTHER,
    RelationshipType.SPOUSE,
    RelationshipType.SIBLING,
)


class TestRelationshipRules:
    """Tests for check_relationship."""

    def test_accepts_new_edge(self, relationships):
        check_relationship("5", "7", SIB, relationships)

    def test_rejects_self(self):
        with pytest.raises(RuleViolation, match="oneself"):
            check_relationship("1", "1", SP, [])

    def test_rejects_exact_duplicate(self, relationships):
        with pytest.raises(RuleViolation, match="already exists"):
            check_relationship("1", "3", F, relationships)

    @pytest.mark.parametrize("rel_type, from_id, to_id", [
        (SP, "2", "1"),
        (SIB, "4", "3"),
    ])
    def test_rejects_reversed_symmetric_duplicate(self, relationships, rel_type, from_id, to_id):
        with pytest.raises(RuleViolation, match="already exists"):
            check_relationship(from_id, to_id, rel_type, relationships)

    def test_reversed_parent_edge_is_not_a_duplicate(self):
        """Reversing a FATHER edge is a different (if odd) statement."""
        check_relationship("3", "1", F, [Relationship("r", F, "1", "3")])

    def test_rejects_second_father(self, relationships):
        with pytest.raises(RuleViolation) as exc:
            check_relationship("5", "3", F, relationships)
        assert str(exc.value) == "This person already has a father assigned."

    def test_rejects_second_mother(self, relationships):
        with pytest.raises(RuleViolation, match="already has a mother assigned"):
            check_relationship("5", "6", M, relationships)

    def test_father_and_mother_can_coexist(self):
        check_relationship("2", "3", M, [Relationship("r", F, "1", "3")])

    def test_editing_ignores_itself(self, relationships):
        check_relationship("1", "3", F, relationships, ignore_id="r2")

    def test_editing_into_a_conflict(self, relationships):
        with pytest.raises(RuleViolation, match="already has a father"):
            check_relationship("5", "4", F, relationships, ignore_id="r7")

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            check_relationship("1", "1", SIB, [])


class TestNameRules:
    """Tests for check_person_name."""

    def test_trims(self, people):
        assert check_person_name("  Dana Doe ", people) == "Dana Doe"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_requires_a_name(self, people, name):
        with pytest.raises(RuleViolation, match="Name is required"):
            check_person_name(name, people)

    def test_case_insensitive_duplicate(self, people):
        with pytest.raises(RuleViolation) as exc:
            check_person_name("  john doe", people)
        assert str(exc.value) == 'Another person with name "john doe" already exists.'

    def test_rename_to_own_name(self, people):
        assert check_person_name("JOHN DOE", people, ignore_id="1") == "JOHN DOE"

    def test_rename_to_someone_else(self, people):
        with pytest.raises(RuleViolation):
            check_person_name("Jane Smith", people, ignore_id="1")

    def test_empty_family(self):
        assert check_person_name("Solo", [Person("x", "Other")]) == "Solo"


class TestWriteTimeViolations:
    """Tests for mapping unique-index violations onto the same editor messages."""

    def test_second_parent(self):
        exc = relationship_violation("family_relationships_parent_uq", "MOTHER")
        assert isinstance(exc, RuleViolation)
        assert str(exc) == "This person already has a mother assigned."

    @pytest.mark.parametrize(
        "constraint",
        ["family_relationships_edge_uq", "family_relationships_symmetric_uq", None],
    )
    def test_duplicate_edge(self, constraint):
        assert str(relationship_violation(constraint, "SPOUSE")) == "This relationship already exists."

    def test_name(self):
        assert str(name_violation("Mike Doe")) == 'Another person with name "Mike Doe" already exists.'

    @pytest.mark.parametrize(
        "index",
        [
            "family_people_name_uq",
            "family_relationships_edge_uq",
            "family_relationships_symmetric_uq",
            "family_relationships_parent_uq",
        ],
    )
    def test_schema_declares_index(self, index):
        assert f"CREATE UNIQUE INDEX IF NOT EXISTS {index}" in SCHEMA_SQL
