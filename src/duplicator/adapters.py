"""Entry adapters: redirect-style, bulk and async callers of the engine.

These translate a request (post id, token, acting user) into a
``Duplicator`` call and shape the outcome for the caller: a redirect URL
or a JSON envelope.  Token checks happen here and only here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel

from duplicator.duplicator import MSG_INVALID_POST, MSG_SUCCESS, Duplicator
from duplicator.models import Actor, DuplicationError, ErrorKind
from duplicator.policy import RedirectAfter

logger = logging.getLogger(__name__)

MSG_SECURITY_CHECK = "Security check failed."
MSG_NOT_FOUND = "Post not found."


class ActionResponse(BaseModel):
    """Outcome of a redirect-style request."""

    redirect_url: str = ""
    new_id: int | None = None
    error: DuplicationError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def _with_query(url: str, **params: Any) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def edit_url(admin_url: str, post_id: int) -> str:
    return _with_query(f"{admin_url.rstrip('/')}/post.php", post=post_id, action="edit")


def list_url(admin_url: str, post_type: str) -> str:
    return _with_query(f"{admin_url.rstrip('/')}/edit.php", post_type=post_type)


def handle_duplicate_action(
    duplicator: Duplicator,
    *,
    post_id: int,
    token: str,
    actor: Actor,
    admin_url: str,
) -> ActionResponse:
    """Handle a click on a per-post duplicate link."""
    if post_id <= 0:
        return ActionResponse(
            error=DuplicationError(kind=ErrorKind.INVALID_POST, message=MSG_INVALID_POST)
        )
    if not duplicator.guard.verify_token(post_id, token, actor):
        logger.warning("Rejected duplicate request for post %d: bad token", post_id)
        return ActionResponse(
            error=DuplicationError(
                kind=ErrorKind.UNAUTHENTICATED_REQUEST, message=MSG_SECURITY_CHECK
            )
        )
    source = duplicator.store.get_post(post_id)
    if source is None:
        return ActionResponse(
            error=DuplicationError(kind=ErrorKind.INVALID_POST, message=MSG_NOT_FOUND)
        )

    result = duplicator.duplicate(post_id, actor=actor)
    if result.error is not None or result.new_id is None:
        return ActionResponse(error=result.error)

    policy = duplicator.settings.get_policy()
    if policy.redirect_after == RedirectAfter.EDIT:
        url = edit_url(admin_url, result.new_id)
    else:
        url = _with_query(list_url(admin_url, source.post_type), duplicated=result.new_id)
    return ActionResponse(redirect_url=url, new_id=result.new_id)


def handle_bulk_action(
    duplicator: Duplicator,
    *,
    post_ids: Iterable[int],
    actor: Actor,
    redirect_url: str,
) -> str:
    """Duplicate the selected posts and return the list URL with the count."""
    entries = duplicator.bulk_duplicate(post_ids, actor=actor)
    succeeded = sum(1 for e in entries if e.success)
    return _with_query(redirect_url, bulk_duplicated=succeeded)


def handle_async_duplicate(
    duplicator: Duplicator,
    *,
    payload: Mapping[str, Any],
    actor: Actor,
    admin_url: str,
) -> dict[str, Any]:
    """Handle an async duplicate request and return a JSON envelope."""
    token = str(payload.get("token") or "")
    if not duplicator.guard.verify_async_token(token, actor):
        return {"success": False, "data": {"message": MSG_SECURITY_CHECK}}

    try:
        post_id = int(payload.get("post_id") or 0)
    except (TypeError, ValueError):
        post_id = 0
    if post_id <= 0:
        return {"success": False, "data": {"message": MSG_INVALID_POST}}

    result = duplicator.duplicate(post_id, actor=actor)
    if result.error is not None:
        return {
            "success": False,
            "data": {"message": result.error.message, "kind": str(result.error.kind)},
        }

    return {
        "success": True,
        "data": {
            "message": MSG_SUCCESS,
            "new_post_id": result.new_id,
            "edit_link": edit_url(admin_url, result.new_id),
        },
    }
