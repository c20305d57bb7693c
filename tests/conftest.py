"""Shared fixtures: an in-memory store with stock users and a wired service."""

from __future__ import annotations

import pytest

from duplicator.models import Actor, PostDraft, PostStatus, User
from duplicator.services import DuplicatorService, create_service
from duplicator.store import JsonPostStore

ADMIN = User(id=1, login="admin", roles=["administrator"])
EDITOR = User(id=2, login="editor", roles=["editor"])
AUTHOR = User(id=3, login="author", roles=["author"])
SUBSCRIBER = User(id=4, login="subscriber", roles=["subscriber"])


def make_post(store: JsonPostStore, **fields: object) -> int:
    """Insert a post with sensible defaults and return its id."""
    values: dict[str, object] = {
        "post_type": "post",
        "status": PostStatus.PUBLISH,
        "parent": 0,
        "title": "Hello world",
        "content": "Body text",
        "excerpt": "Short",
        "author": EDITOR.id,
        "date": "2024-03-01 10:00:00",
        "date_gmt": "2024-03-01 09:00:00",
    }
    values.update(fields)
    return store.insert_post(PostDraft.model_validate(values))


@pytest.fixture
def service() -> DuplicatorService:
    svc = create_service()
    for user in (ADMIN, EDITOR, AUTHOR, SUBSCRIBER):
        svc.store.add_user(user)
    return svc


@pytest.fixture
def store(service: DuplicatorService) -> JsonPostStore:
    return service.store


@pytest.fixture
def admin() -> Actor:
    return Actor.from_user(ADMIN)


@pytest.fixture
def editor() -> Actor:
    return Actor.from_user(EDITOR)


@pytest.fixture
def author() -> Actor:
    return Actor.from_user(AUTHOR)


@pytest.fixture
def subscriber() -> Actor:
    return Actor.from_user(SUBSCRIBER)
