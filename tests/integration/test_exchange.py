"""
Integration tests for JSON export and import.

Run: pytest tests/integration/test_exchange.py -v
"""
import json

import pytest

from flipset.content import (
    EXPORT_VERSION,
    ConflictResolution,
    ContentExchange,
    ImportValidationError,
    parse_export,
    read_export,
    write_export,
)


@pytest.fixture
def exchange(session_factory):
    return ContentExchange(session_factory)


def export_document(categories, cards):
    return {
        "version": 1,
        "exported_at": "2024-01-01T00:00:00+00:00",
        "categories": categories,
        "cards": cards,
    }


SPANISH_EXPORT = export_document(
    [{"id": "src-cat", "name": "spanish"}],
    [
        {"id": "src-1", "front_content": "gato", "back_content": "cat", "category_ids": ["src-cat"]},
        {"id": "src-2", "front_content": "perro", "back_content": "dog", "category_ids": ["src-cat"]},
    ],
)


class TestParseExport:
    """Validation happens before anything touches the database."""

    def test_valid_document(self):
        data = parse_export(json.dumps(SPANISH_EXPORT))

        assert data.version == 1
        assert [c.id for c in data.cards] == ["src-1", "src-2"]

    def test_not_json(self):
        with pytest.raises(ImportValidationError):
            parse_export("{broken")

    def test_top_level_must_be_object(self):
        with pytest.raises(ImportValidationError):
            parse_export("[]")

    @pytest.mark.parametrize(
        "patch",
        [
            {"version": "1"},
            {"categories": {}},
            {"cards": None},
            {"categories": [{"id": "c"}]},
            {"cards": [{"id": "x", "front_content": 1, "back_content": "b", "category_ids": []}]},
            {"cards": [{"id": "x", "front_content": "a", "back_content": "b", "category_ids": "c"}]},
        ],
    )
    def test_structural_errors(self, patch):
        with pytest.raises(ImportValidationError):
            parse_export({**SPANISH_EXPORT, **patch})

    def test_missing_cards_key(self):
        document = {k: v for k, v in SPANISH_EXPORT.items() if k != "cards"}

        with pytest.raises(ImportValidationError):
            parse_export(document)

    def test_invalid_document_leaves_store_untouched(self, tmp_path, card_store):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"version": 1, "categories": []}), encoding="utf-8")

        with pytest.raises(ImportValidationError):
            read_export(path)

        assert card_store.list_cards() == []


class TestExport:
    def test_export_contains_everything(self, exchange, card_store, tmp_path):
        spanish = card_store.create_category("Spanish")
        card_store.create_card("hola", "hello", [spanish.id])
        card_store.create_card("loose", "card")

        data = exchange.export_data()
        path = write_export(data, tmp_path / "export.json")
        written = json.loads(path.read_text(encoding="utf-8"))

        assert written["version"] == EXPORT_VERSION
        assert written["categories"] == [{"id": spanish.id, "name": "Spanish"}]
        by_front = {c["front_content"]: c for c in written["cards"]}
        assert by_front["hola"]["category_ids"] == [spanish.id]
        assert by_front["loose"]["category_ids"] == []


class TestImport:
    """Tests for importing into a store, with and without conflicts."""

    def test_import_into_empty_store(self, exchange, card_store):
        result = exchange.import_data(parse_export(SPANISH_EXPORT))

        assert result.cards_imported == 2
        assert result.categories_imported == 1
        category = card_store.list_categories()[1]
        assert category.name == "spanish"
        assert category.id != "src-cat"
        assert {c.id for c in card_store.list_cards()}.isdisjoint({"src-1", "src-2"})

    def test_conflicts_ignore_case(self, exchange, card_store):
        card_store.create_category("Spanish")

        assert exchange.find_import_conflicts(parse_export(SPANISH_EXPORT)) == ["spanish"]

    def test_merge_reuses_existing_category(self, exchange, card_store):
        existing = card_store.create_category("Spanish")
        kept = card_store.create_card("hola", "hello", [existing.id])

        result = exchange.import_data(
            parse_export(SPANISH_EXPORT), {"spanish": ConflictResolution.MERGE}
        )

        assert result.categories_imported == 0
        assert result.cards_imported == 2
        assert result.cards_deleted == []
        cards = card_store.get_cards_by_categories([existing.id])
        assert [c.front_content for c in cards] == ["gato", "hola", "perro"]
        assert kept.id in {c.id for c in cards}
        assert len(card_store.list_categories()) == 2

    def test_unlisted_conflict_merges(self, exchange, card_store):
        existing = card_store.create_category("Spanish")

        result = exchange.import_data(parse_export(SPANISH_EXPORT))

        assert result.categories_imported == 0
        assert len(card_store.get_cards_by_categories([existing.id])) == 2

    def test_overwrite_replaces_exclusive_cards(self, exchange, card_store):
        existing = card_store.create_category("Spanish")
        other = card_store.create_category("Other")
        owned = card_store.create_card("hola", "hello", [existing.id])
        shared = card_store.create_card("adios", "bye", [existing.id, other.id])

        result = exchange.import_data(
            parse_export(SPANISH_EXPORT), {"SPANISH": "overwrite"}
        )

        assert result.cards_deleted == [owned.id]
        assert card_store.get_card_by_id(owned.id) is None
        assert [c.id for c in card_store.get_card_by_id(shared.id).categories] == [other.id]
        fronts = [c.front_content for c in card_store.get_cards_by_categories([existing.id])]
        assert fronts == ["gato", "perro"]

    def test_uncategorized_name_is_not_imported(self, exchange, card_store):
        document = export_document(
            [{"id": "u", "name": "Uncategorized"}],
            [{"id": "x", "front_content": "a", "back_content": "b", "category_ids": ["u"]}],
        )

        result = exchange.import_data(parse_export(document))

        assert result.categories_imported == 0
        assert [c.name for c in card_store.list_categories()] == ["Uncategorized"]
        assert card_store.list_cards()[0].categories == []

    def test_unknown_category_reference_imports_uncategorized(self, exchange, card_store):
        document = export_document(
            [],
            [{"id": "x", "front_content": "a", "back_content": "b", "category_ids": ["ghost"]}],
        )

        result = exchange.import_data(parse_export(document))

        assert result.cards_imported == 1
        assert card_store.list_cards()[0].categories == []

    def test_round_trip_between_stores(self, exchange, card_store, tmp_path):
        spanish = card_store.create_category("Spanish")
        card_store.create_card("hola", "hello", [spanish.id])
        path = write_export(exchange.export_data(), tmp_path / "export.json")

        card_store.delete_category(spanish.id, "delete")
        exchange.import_data(read_export(path))

        cards = card_store.list_cards()
        assert [(c.front_content, [cat.name for cat in c.categories]) for c in cards] == [
            ("hola", ["Spanish"])
        ]
