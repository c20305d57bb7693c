"""Compute the attributes of a copy from its source post."""

from __future__ import annotations

from duplicator.hooks import HookRegistry
from duplicator.models import Actor, Post, PostDraft
from duplicator.policy import DuplicationPolicy


def copy_title(title: str, suffix: str) -> str:
    """Title of a copy: the source title, one space, then the suffix."""
    return f"{title} {suffix}"


def project(
    source: Post,
    policy: DuplicationPolicy,
    actor: Actor,
    hooks: HookRegistry | None = None,
) -> PostDraft:
    """Build the draft of the new post.

    The status always comes from the policy, never from the source.
    ``new_post_data`` filters may rewrite the draft; their result is
    re-validated and is what gets inserted.
    """
    draft = PostDraft(
        title=copy_title(source.title, policy.title_suffix),
        post_type=source.post_type,
        status=policy.default_status,
        comment_status=source.comment_status,
        ping_status=source.ping_status,
        parent=source.parent,
        menu_order=source.menu_order,
        password=source.password,
        author=source.author if policy.duplicate_author else actor.user_id,
    )

    if policy.duplicate_content:
        draft.content = source.content

    if policy.duplicate_excerpt:
        draft.excerpt = source.excerpt

    # Local and UTC dates travel together
    if policy.duplicate_date:
        draft.date = source.date
        draft.date_gmt = source.date_gmt

    if hooks is None:
        return draft
    rewritten = hooks.apply_filters("new_post_data", draft, source, policy)
    return PostDraft.model_validate(rewritten)
