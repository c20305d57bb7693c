"""Tests for JsonPostStore: JSON-backed post and satellite data store."""

import json
from pathlib import Path

import pytest
from duplicator.models import PostDraft, PostStatus, PostType
from duplicator.store import (
    STORE_FILENAME,
    JsonPostStore,
    StoreError,
    maybe_unserialize,
    serialize_meta,
)


def _make_draft(**kwargs: object) -> PostDraft:
    values: dict[str, object] = {
        "post_type": "post",
        "status": PostStatus.DRAFT,
        "parent": 0,
        "title": "Test Post",
        "content": "Test body",
    }
    values.update(kwargs)
    return PostDraft.model_validate(values)


class TestInsert:
    def test_assigns_increasing_ids(self):
        store = JsonPostStore()
        first = store.insert_post(_make_draft())
        second = store.insert_post(_make_draft())
        assert second == first + 1

    def test_persists_to_disk(self, tmp_path: Path):
        store = JsonPostStore(tmp_path)
        post_id = store.insert_post(_make_draft(title="On disk"))

        data = json.loads((tmp_path / STORE_FILENAME).read_text(encoding="utf-8"))
        assert data["posts"][0]["id"] == post_id
        assert data["posts"][0]["title"] == "On disk"

    def test_reloads_from_disk(self, tmp_path: Path):
        post_id = JsonPostStore(tmp_path).insert_post(_make_draft(title="Reloaded"))
        fetched = JsonPostStore(tmp_path).get_post(post_id)
        assert fetched is not None
        assert fetched.title == "Reloaded"

    def test_unset_optional_fields_use_defaults(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft(content=None, excerpt=None))
        post = store.get_post(post_id)
        assert post is not None
        assert post.content == ""
        assert post.excerpt == ""

    def test_rejects_unknown_type(self):
        store = JsonPostStore()
        with pytest.raises(StoreError, match="Invalid post type"):
            store.insert_post(_make_draft(post_type="book"))

    def test_rejects_empty_post(self):
        store = JsonPostStore()
        with pytest.raises(StoreError, match="empty"):
            store.insert_post(_make_draft(title="", content=None))

    def test_rejects_missing_parent(self):
        store = JsonPostStore()
        with pytest.raises(StoreError, match="parent"):
            store.insert_post(_make_draft(parent=99))

    def test_rejected_insert_leaves_store_untouched(self, tmp_path: Path):
        store = JsonPostStore(tmp_path)
        store.insert_post(_make_draft())
        with pytest.raises(StoreError):
            store.insert_post(_make_draft(post_type="book"))
        assert len(store.list_posts()) == 1


class TestGetAndUpdate:
    def test_get_returns_copy(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        post = store.get_post(post_id)
        assert post is not None
        post.title = "mutated"
        assert store.get_post(post_id).title == "Test Post"  # type: ignore[union-attr]

    def test_get_missing(self):
        assert JsonPostStore().get_post(404) is None

    def test_update_post(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        store.update_post(post_id, menu_order=7)
        assert store.get_post(post_id).menu_order == 7  # type: ignore[union-attr]

    def test_update_missing_raises(self):
        with pytest.raises(KeyError):
            JsonPostStore().update_post(1, menu_order=2)

    def test_update_invalid_value(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        with pytest.raises(StoreError):
            store.update_post(post_id, menu_order="first")

    def test_list_filters_by_type(self):
        store = JsonPostStore()
        store.insert_post(_make_draft())
        store.insert_post(_make_draft(post_type="page"))
        assert [p.post_type for p in store.list_posts("page")] == ["page"]


class TestMeta:
    def test_repeated_keys_are_kept(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        store.add_meta(post_id, "color", "red")
        store.add_meta(post_id, "color", "blue")
        assert store.get_meta_values(post_id, "color") == ["red", "blue"]

    def test_structured_value_round_trips(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        store.add_meta(post_id, "layout", {"cols": 2, "blocks": ["a", "b"]})
        assert store.get_meta_values(post_id, "layout") == [{"cols": 2, "blocks": ["a", "b"]}]

    def test_add_meta_to_missing_post(self):
        with pytest.raises(KeyError):
            JsonPostStore().add_meta(5, "k", "v")


class TestSerialization:
    def test_strings_stored_as_is(self):
        assert serialize_meta("123") == "123"
        assert maybe_unserialize("123") == "123"

    def test_numbers_serialized(self):
        assert serialize_meta(5) == "5"

    def test_invalid_json_left_alone(self):
        assert maybe_unserialize("{not json") == "{not json"


class TestTerms:
    def test_set_replaces(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        store.set_terms(post_id, "category", [1])
        store.set_terms(post_id, "category", [2, 3])
        assert store.get_terms(post_id, "category") == [2, 3]

    def test_unregistered_taxonomy_raises(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft(post_type="page"))
        with pytest.raises(StoreError):
            store.get_terms(post_id, "category")

    def test_object_taxonomies(self):
        store = JsonPostStore()
        assert "category" in store.object_taxonomies("post")
        assert store.object_taxonomies("page") == []
        assert store.object_taxonomies("book") == []

    def test_register_post_type(self):
        store = JsonPostStore()
        store.register_post_type(PostType(name="book", taxonomies=["genre"]))
        assert store.object_taxonomies("book") == ["genre"]


class TestThumbnail:
    def test_set_and_get(self):
        store = JsonPostStore()
        post_id = store.insert_post(_make_draft())
        assert store.get_thumbnail(post_id) is None
        store.set_thumbnail(post_id, 42)
        assert store.get_thumbnail(post_id) == 42


class TestCorruptStore:
    def test_corrupt_file_starts_fresh(self, tmp_path: Path):
        (tmp_path / STORE_FILENAME).write_text("not json{{{", encoding="utf-8")
        store = JsonPostStore(tmp_path)
        assert store.list_posts() == []
