"""
Integration tests for CardStore against a temporary SQLite database.

Run: pytest tests/integration/test_card_store.py -v
"""
import pytest

from flipset.store import (
    UNCATEGORIZED_ID,
    CardFate,
    CardNotFoundError,
    CategoryExistsError,
    CategoryNotFoundError,
    SortDirection,
    SortField,
    SortOptions,
)


@pytest.fixture
def spanish(card_store):
    return card_store.create_category("Spanish")


@pytest.fixture
def french(card_store):
    return card_store.create_category("French")


class TestCategories:
    """Tests for category CRUD."""

    def test_uncategorized_is_listed_first(self, card_store, spanish, french):
        names = [c.name for c in card_store.list_categories()]

        assert names == ["Uncategorized", "French", "Spanish"]

    def test_card_counts(self, card_store, spanish, french):
        card_store.create_card("hola", "hello", [spanish.id])
        card_store.create_card("bonjour", "hello", [french.id, spanish.id])
        card_store.create_card("loose", "card")

        counts = {c.name: c.card_count for c in card_store.list_categories()}

        assert counts == {"Uncategorized": 1, "French": 1, "Spanish": 2}

    def test_names_are_unique_ignoring_case(self, card_store, spanish):
        with pytest.raises(CategoryExistsError):
            card_store.create_category("  SPANISH ")

    def test_uncategorized_name_is_reserved(self, card_store):
        assert card_store.category_name_exists("uncategorized")
        with pytest.raises(CategoryExistsError):
            card_store.create_category("Uncategorized")

    def test_blank_name_rejected(self, card_store):
        with pytest.raises(ValueError):
            card_store.create_category("   ")

    def test_rename(self, card_store, spanish):
        renamed = card_store.rename_category(spanish.id, "Español")

        assert renamed.name == "Español"
        assert card_store.get_category(spanish.id).name == "Español"

    def test_rename_to_same_name_different_case(self, card_store, spanish):
        assert card_store.rename_category(spanish.id, "SPANISH").name == "SPANISH"

    def test_rename_to_taken_name(self, card_store, spanish, french):
        with pytest.raises(CategoryExistsError):
            card_store.rename_category(spanish.id, "french")

    def test_rename_missing(self, card_store):
        with pytest.raises(CategoryNotFoundError):
            card_store.rename_category("nope", "Anything")

    def test_get_uncategorized_sentinel(self, card_store):
        category = card_store.get_category(UNCATEGORIZED_ID)

        assert category.is_uncategorized
        assert category.name == "Uncategorized"


class TestDeleteCategory:
    """Tests for deleting categories with each card fate."""

    def test_move(self, card_store, spanish, french):
        card = card_store.create_card("hola", "hello", [spanish.id])

        deleted = card_store.delete_category(spanish.id, CardFate.MOVE, french.id)

        assert deleted == []
        assert [c.id for c in card_store.get_card_by_id(card.id).categories] == [french.id]
        assert card_store.get_category(spanish.id) is None

    def test_move_skips_existing_association(self, card_store, spanish, french):
        card = card_store.create_card("bonjour", "hello", [spanish.id, french.id])

        card_store.delete_category(spanish.id, CardFate.MOVE, french.id)

        assert [c.id for c in card_store.get_card_by_id(card.id).categories] == [french.id]

    def test_move_to_uncategorized(self, card_store, spanish):
        card = card_store.create_card("hola", "hello", [spanish.id])

        card_store.delete_category(spanish.id, CardFate.MOVE, UNCATEGORIZED_ID)

        assert card_store.get_card_by_id(card.id).categories == []

    def test_move_requires_target(self, card_store, spanish):
        with pytest.raises(ValueError):
            card_store.delete_category(spanish.id, CardFate.MOVE)

    def test_move_to_missing_target_changes_nothing(self, card_store, spanish):
        card = card_store.create_card("hola", "hello", [spanish.id])

        with pytest.raises(CategoryNotFoundError):
            card_store.delete_category(spanish.id, CardFate.MOVE, "nope")

        assert card_store.get_category(spanish.id) is not None
        assert len(card_store.get_card_by_id(card.id).categories) == 1

    def test_uncategorize(self, card_store, spanish):
        card = card_store.create_card("hola", "hello", [spanish.id])

        assert card_store.delete_category(spanish.id, CardFate.UNCATEGORIZE) == []

        assert card_store.get_card_by_id(card.id).categories == []

    def test_delete_only_removes_exclusive_cards(self, card_store, spanish, french):
        owned = card_store.create_card("hola", "hello", [spanish.id])
        shared = card_store.create_card("bonjour", "hello", [spanish.id, french.id])

        deleted = card_store.delete_category(spanish.id, CardFate.DELETE)

        assert deleted == [owned.id]
        assert card_store.get_card_by_id(owned.id) is None
        survivor = card_store.get_card_by_id(shared.id)
        assert [c.id for c in survivor.categories] == [french.id]

    def test_uncategorized_cannot_be_deleted(self, card_store):
        with pytest.raises(ValueError):
            card_store.delete_category(UNCATEGORIZED_ID, CardFate.DELETE)

    def test_missing_category(self, card_store):
        with pytest.raises(CategoryNotFoundError):
            card_store.delete_category("nope", CardFate.UNCATEGORIZE)


class TestCards:
    """Tests for card CRUD and listing."""

    def test_create_and_get(self, card_store, spanish):
        card = card_store.create_card("<b>hola</b>", "hello", [spanish.id])

        fetched = card_store.get_card_by_id(card.id)

        assert fetched.front_content == "<b>hola</b>"
        assert fetched.back_content == "hello"
        assert [c.name for c in fetched.categories] == ["Spanish"]

    def test_create_with_unknown_category(self, card_store):
        with pytest.raises(CategoryNotFoundError):
            card_store.create_card("front", "back", ["nope"])

        assert card_store.list_cards() == []

    def test_sentinel_in_category_list_means_no_category(self, card_store):
        card = card_store.create_card("front", "back", [UNCATEGORIZED_ID])

        assert card.categories == []

    def test_update_replaces_categories(self, card_store, spanish, french):
        card = card_store.create_card("hola", "hello", [spanish.id])

        updated = card_store.update_card(card.id, "hola!", "hello!", [french.id])

        assert updated.front_content == "hola!"
        assert [c.id for c in updated.categories] == [french.id]
        assert updated.updated_at >= card.updated_at

    def test_update_missing(self, card_store):
        with pytest.raises(CardNotFoundError):
            card_store.update_card("nope", "a", "b")

    def test_delete(self, card_store, spanish):
        card = card_store.create_card("hola", "hello", [spanish.id])

        assert card_store.delete_card(card.id)
        assert card_store.get_card_by_id(card.id) is None
        assert not card_store.delete_card(card.id)
        assert {c.name: c.card_count for c in card_store.list_categories()}["Spanish"] == 0

    def test_list_sorted_alphabetically_ignoring_case(self, card_store):
        for front in ("banana", "Apple", "cherry"):
            card_store.create_card(front, "fruit")

        fronts = [c.front_content for c in card_store.list_cards()]
        reversed_fronts = [
            c.front_content
            for c in card_store.list_cards(SortOptions(SortField.ALPHABETICAL, SortDirection.DESC))
        ]

        assert fronts == ["Apple", "banana", "cherry"]
        assert reversed_fronts == ["cherry", "banana", "Apple"]

    def test_search_matches_front_and_back(self, card_store):
        card_store.create_card("perro", "dog")
        card_store.create_card("gato", "cat")
        card_store.create_card("Doghouse", "caseta")

        fronts = [c.front_content for c in card_store.list_cards(search="DOG")]

        assert fronts == ["Doghouse", "perro"]


class TestCardsByCategories:
    """Tests for resolving categories to session cards."""

    def test_union_without_duplicates(self, card_store, spanish, french):
        card_store.create_card("hola", "hello", [spanish.id])
        card_store.create_card("bonjour", "hello", [spanish.id, french.id])
        card_store.create_card("merci", "thanks", [french.id])

        cards = card_store.get_cards_by_categories([spanish.id, french.id])

        assert [c.front_content for c in cards] == ["bonjour", "hola", "merci"]

    def test_uncategorized_sentinel(self, card_store, spanish):
        card_store.create_card("hola", "hello", [spanish.id])
        loose = card_store.create_card("loose", "card")

        cards = card_store.get_cards_by_categories([UNCATEGORIZED_ID])

        assert [c.id for c in cards] == [loose.id]

    def test_sentinel_combined_with_category(self, card_store, spanish):
        card_store.create_card("hola", "hello", [spanish.id])
        card_store.create_card("loose", "card")

        cards = card_store.get_cards_by_categories([spanish.id, UNCATEGORIZED_ID])

        assert [c.front_content for c in cards] == ["hola", "loose"]

    def test_empty_category(self, card_store, spanish):
        assert card_store.get_cards_by_categories([spanish.id]) == []
