"""Copy data that lives outside the post row onto a new post.

Every operation here is independent of the others and tolerates having
nothing to copy.  ``apply_satellites`` runs the enabled ones and never
raises: a failing copy is logged and reported as a warning, and the
duplication still counts as successful.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from duplicator.hooks import HookRegistry
from duplicator.models import Post
from duplicator.policy import DuplicationPolicy
from duplicator.store import POST_FORMAT_TAXONOMY, PostRepository, StoreError, maybe_unserialize

logger = logging.getLogger(__name__)


def excluded_meta_keys(policy: DuplicationPolicy, hooks: HookRegistry | None = None) -> set[str]:
    keys = list(policy.excluded_meta_keys)
    if hooks is not None:
        keys = hooks.apply_filters("excluded_meta_keys", keys)
    return set(keys)


def copy_meta(
    store: PostRepository,
    source_id: int,
    new_id: int,
    policy: DuplicationPolicy,
    hooks: HookRegistry | None = None,
) -> int:
    """Append every non-excluded metadata row of the source to the copy.

    Returns the number of rows copied.
    """
    entries = store.get_meta(source_id)
    if not entries:
        return 0

    excluded = excluded_meta_keys(policy, hooks)
    copied = 0
    for entry in entries:
        if entry.key in excluded:
            continue
        store.add_meta(new_id, entry.key, maybe_unserialize(entry.value))
        copied += 1
    return copied


def copy_taxonomies(store: PostRepository, source_id: int, new_id: int, post_type: str) -> int:
    """Replace the copy's terms with the source's, taxonomy by taxonomy.

    Post formats are never copied.  A taxonomy whose terms cannot be
    read, or that has none, is skipped.  Returns the number of
    taxonomies written.
    """
    written = 0
    for taxonomy in store.object_taxonomies(post_type):
        if taxonomy == POST_FORMAT_TAXONOMY:
            continue
        try:
            terms = store.get_terms(source_id, taxonomy)
        except StoreError:
            logger.debug("Could not read %s terms of post %d", taxonomy, source_id)
            continue
        if not terms:
            continue
        store.set_terms(new_id, taxonomy, terms)
        written += 1
    return written


def copy_thumbnail(store: PostRepository, source_id: int, new_id: int) -> bool:
    """Copy the featured media reference; a missing one is left alone."""
    media_id = store.get_thumbnail(source_id)
    if not media_id:
        return False
    store.set_thumbnail(new_id, media_id)
    return True


def copy_menu_order(store: PostRepository, source_id: int, new_id: int) -> bool:
    """Re-apply the source's ordering value onto the copy."""
    source = store.get_post(source_id)
    if source is None:
        return False
    store.update_post(new_id, menu_order=source.menu_order)
    return True


def apply_satellites(
    store: PostRepository,
    source: Post,
    new_id: int,
    policy: DuplicationPolicy,
    hooks: HookRegistry | None = None,
) -> list[str]:
    """Run every satellite copy enabled by ``policy``.

    Returns warnings for the copies that failed; an empty list means
    everything enabled went through.
    """
    steps: list[tuple[str, bool, Callable[[], object]]] = [
        ("meta", policy.duplicate_meta, lambda: copy_meta(store, source.id, new_id, policy, hooks)),
        (
            "taxonomies",
            policy.duplicate_taxonomies,
            lambda: copy_taxonomies(store, source.id, new_id, source.post_type),
        ),
        ("thumbnail", policy.duplicate_thumbnail, lambda: copy_thumbnail(store, source.id, new_id)),
        ("menu_order", policy.duplicate_menu_order, lambda: copy_menu_order(store, source.id, new_id)),
    ]

    warnings: list[str] = []
    for name, enabled, step in steps:
        if not enabled:
            continue
        try:
            step()
        except Exception as exc:
            logger.warning(
                "Copying %s from post %d to %d failed", name, source.id, new_id, exc_info=True
            )
            warnings.append(f"{name}: {exc}")
    return warnings
