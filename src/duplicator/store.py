"""JSON-backed post store.

Persists posts together with their satellite data (metadata rows, term
associations, featured media) in a single JSON file, loaded on init and
saved after every write operation.  A post insert is a single save, so
a rejected insert leaves the file untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from duplicator.models import MetaEntry, Post, PostDraft, PostType, User

logger = logging.getLogger(__name__)

STORE_FILENAME = ".duplicator-store.json"

POST_FORMAT_TAXONOMY = "post_format"

DEFAULT_POST_TYPES = [
    PostType(name="post", taxonomies=["category", "post_tag", POST_FORMAT_TAXONOMY]),
    PostType(name="page"),
    PostType(name="revision"),
]


class StoreError(Exception):
    """The store refused a write or a read."""


class PostRepository(Protocol):
    """What the duplication engine needs from a record store."""

    def get_post(self, post_id: int) -> Post | None: ...

    def get_post_type(self, name: str) -> PostType | None: ...

    def insert_post(self, draft: PostDraft) -> int: ...

    def update_post(self, post_id: int, **fields: Any) -> None: ...

    def get_meta(self, post_id: int) -> list[MetaEntry]: ...

    def add_meta(self, post_id: int, key: str, value: Any) -> None: ...

    def object_taxonomies(self, post_type: str) -> list[str]: ...

    def get_terms(self, post_id: int, taxonomy: str) -> list[int]: ...

    def set_terms(self, post_id: int, taxonomy: str, term_ids: list[int]) -> None: ...

    def get_thumbnail(self, post_id: int) -> int | None: ...

    def set_thumbnail(self, post_id: int, media_id: int) -> None: ...


def serialize_meta(value: Any) -> str:
    """Serialize a metadata value; strings are stored as-is."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def maybe_unserialize(raw: str) -> Any:
    """Decode a stored metadata value if it holds a structured value.

    Only JSON objects and arrays are decoded; anything else is returned
    unchanged so that scalar strings like ``"123"`` stay strings.
    """
    text = raw.strip()
    if not text or text[0] not in "[{":
        return raw
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return raw


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    next_id: int = 1
    posts: list[Post] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    post_types: list[PostType] = Field(default_factory=lambda: list(DEFAULT_POST_TYPES))
    meta: dict[str, list[MetaEntry]] = Field(default_factory=dict)
    terms: dict[str, dict[str, list[int]]] = Field(default_factory=dict)
    thumbnails: dict[str, int] = Field(default_factory=dict)


class JsonPostStore:
    """JSON-backed store for posts and their satellite data.

    Pass ``output_dir=None`` for a purely in-memory store.
    """

    def __init__(self, output_dir: Path | None = None) -> None:
        self._path = output_dir / STORE_FILENAME if output_dir is not None else None
        self._data = self._load()

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> _StoreData:
        if self._path is None or not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            logger.warning("Corrupt post store at %s, starting fresh", self._path)
            return _StoreData()

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            self._data.model_dump_json(indent=2),
            encoding="utf-8",
        )

    def _find(self, post_id: int) -> Post | None:
        for post in self._data.posts:
            if post.id == post_id:
                return post
        return None

    def _require(self, post_id: int) -> Post:
        post = self._find(post_id)
        if post is None:
            raise KeyError(post_id)
        return post

    def _validate(self, draft: PostDraft) -> None:
        if self.get_post_type(draft.post_type) is None:
            raise StoreError(f"Invalid post type: {draft.post_type!r}")
        if not any(v.strip() for v in (draft.title, draft.content or "", draft.excerpt or "")):
            raise StoreError("Content, title, and excerpt are empty.")
        if draft.parent and self._find(draft.parent) is None:
            raise StoreError(f"Invalid parent post: {draft.parent}")

    # ── Registration ─────────────────────────────────────────────

    def register_post_type(self, post_type: PostType) -> None:
        """Register (or replace) a post type."""
        self._data.post_types = [t for t in self._data.post_types if t.name != post_type.name]
        self._data.post_types.append(post_type)
        self._save()

    def add_user(self, user: User) -> None:
        """Insert or replace a user by id."""
        self._data.users = [u for u in self._data.users if u.id != user.id]
        self._data.users.append(user)
        self._save()

    def get_user(self, user_id: int) -> User | None:
        for user in self._data.users:
            if user.id == user_id:
                return user
        return None

    # ── Posts ────────────────────────────────────────────────────

    def get_post(self, post_id: int) -> Post | None:
        """Return a copy of a post, or None if not found."""
        post = self._find(post_id)
        return post.model_copy(deep=True) if post is not None else None

    def list_posts(self, post_type: str | None = None) -> list[Post]:
        posts = self._data.posts
        if post_type is not None:
            posts = [p for p in posts if p.post_type == post_type]
        return [p.model_copy(deep=True) for p in posts]

    def get_post_type(self, name: str) -> PostType | None:
        for post_type in self._data.post_types:
            if post_type.name == name:
                return post_type
        return None

    def insert_post(self, draft: PostDraft) -> int:
        """Validate and insert a new post, returning its assigned id.

        Raises StoreError if the draft is not a valid post.
        """
        self._validate(draft)
        fields = draft.model_dump(exclude_none=True)
        try:
            post = Post(id=self._data.next_id, **fields)
        except ValidationError as exc:
            raise StoreError(str(exc)) from exc
        self._data.posts.append(post)
        self._data.next_id += 1
        self._save()
        logger.debug("Inserted post %d (%s)", post.id, post.post_type)
        return post.id

    def update_post(self, post_id: int, **fields: Any) -> None:
        """Update attributes of an existing post.

        Raises KeyError if the post does not exist and StoreError if the
        new values are invalid.
        """
        post = self._require(post_id)
        fields.pop("id", None)
        try:
            updated = Post.model_validate({**post.model_dump(), **fields})
        except ValidationError as exc:
            raise StoreError(str(exc)) from exc
        self._data.posts = [updated if p.id == post_id else p for p in self._data.posts]
        self._save()

    # ── Metadata ─────────────────────────────────────────────────

    def get_meta(self, post_id: int) -> list[MetaEntry]:
        """Return the raw metadata rows of a post in insertion order."""
        return [e.model_copy() for e in self._data.meta.get(str(post_id), [])]

    def add_meta(self, post_id: int, key: str, value: Any) -> None:
        """Append a metadata row; existing rows with the same key are kept.

        Raises KeyError if the post does not exist.
        """
        self._require(post_id)
        entry = MetaEntry(key=key, value=serialize_meta(value))
        self._data.meta.setdefault(str(post_id), []).append(entry)
        self._save()

    def get_meta_values(self, post_id: int, key: str) -> list[Any]:
        return [maybe_unserialize(e.value) for e in self.get_meta(post_id) if e.key == key]

    # ── Taxonomies ───────────────────────────────────────────────

    def object_taxonomies(self, post_type: str) -> list[str]:
        registered = self.get_post_type(post_type)
        return list(registered.taxonomies) if registered is not None else []

    def get_terms(self, post_id: int, taxonomy: str) -> list[int]:
        """Return the term ids of a post for one taxonomy.

        Raises StoreError if the taxonomy is not registered for the
        post's type.
        """
        post = self._require(post_id)
        if taxonomy not in self.object_taxonomies(post.post_type):
            raise StoreError(f"Invalid taxonomy: {taxonomy!r}")
        return list(self._data.terms.get(str(post_id), {}).get(taxonomy, []))

    def set_terms(self, post_id: int, taxonomy: str, term_ids: list[int]) -> None:
        """Replace the term ids of a post for one taxonomy."""
        self._require(post_id)
        self._data.terms.setdefault(str(post_id), {})[taxonomy] = list(dict.fromkeys(term_ids))
        self._save()

    # ── Featured media ───────────────────────────────────────────

    def get_thumbnail(self, post_id: int) -> int | None:
        return self._data.thumbnails.get(str(post_id))

    def set_thumbnail(self, post_id: int, media_id: int) -> None:
        self._require(post_id)
        self._data.thumbnails[str(post_id)] = media_id
        self._save()
