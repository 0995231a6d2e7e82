"""Tests for action identifiers."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from formweave.runtime.identifiers import IdentifierAssigner, action_id, normalize_label


class TestNormalizeLabel:
    def test_lowercases_and_joins_words(self) -> None:
        assert normalize_label("Add Item") == "add_item"

    def test_collapses_punctuation(self) -> None:
        assert normalize_label("  Hello, World! ") == "hello_world"

    def test_empty_label_falls_back(self) -> None:
        assert normalize_label("") == "action"
        assert normalize_label("!!!") == "action"


class TestActionId:
    def test_first_ordinal(self) -> None:
        assert action_id("Greet", 1) == "greet_1"

    def test_prefix(self) -> None:
        assert action_id("Add item", 3, prefix="btn_") == "btn_add_item_3"

    def test_pure(self) -> None:
        assert action_id("Save", 2) == action_id("Save", 2)


class TestIdentifierAssigner:
    def test_counts_from_one(self) -> None:
        ids = IdentifierAssigner()
        assert ids.assign("Save") == "save_1"
        assert ids.assign("Save") == "save_2"
        assert ids.assigned == 2

    def test_fresh_assigner_repeats_sequence(self) -> None:
        labels = ["Greet", "Clear", "Greet"]
        first = [IdentifierAssigner().assign(label) for label in labels]
        second = [IdentifierAssigner().assign(label) for label in labels]
        assert first == second

    @given(st.lists(st.text(max_size=30), max_size=60))
    @settings(max_examples=200)
    def test_ids_never_collide_within_a_build(self, labels: list[str]) -> None:
        """Invariant: every action of one build gets a distinct id."""
        ids = IdentifierAssigner()
        assigned = [ids.assign(label) for label in labels]
        assert len(set(assigned)) == len(assigned)

    @given(st.lists(st.text(max_size=30), min_size=1, max_size=30))
    def test_ids_depend_only_on_declaration_order(self, labels: list[str]) -> None:
        """Invariant: the same declarations yield the same ids in every build."""
        first = IdentifierAssigner("p_")
        second = IdentifierAssigner("p_")
        assert [first.assign(label) for label in labels] == [
            second.assign(label) for label in labels
        ]
