"""Table-driven capability checks for the stock user roles."""

from __future__ import annotations

from collections.abc import Mapping

from duplicator.models import Actor
from duplicator.store import JsonPostStore

DEFAULT_ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "administrator": frozenset(
        {
            "edit_posts",
            "edit_others_posts",
            "edit_pages",
            "edit_others_pages",
            "manage_options",
        }
    ),
    "editor": frozenset({"edit_posts", "edit_others_posts", "edit_pages", "edit_others_pages"}),
    "author": frozenset({"edit_posts"}),
    "contributor": frozenset({"edit_posts"}),
    "subscriber": frozenset({"read"}),
}


class RoleCapabilities:
    """Grant capabilities from a role table.

    Per-post ``edit_<type>`` checks pass for the post's author or for
    holders of the type's ``edit_others_<type>s`` capability.
    """

    def __init__(
        self,
        store: JsonPostStore,
        role_caps: Mapping[str, frozenset[str]] | None = None,
        super_admins: set[int] | None = None,
    ) -> None:
        self.store = store
        self.role_caps = dict(role_caps or DEFAULT_ROLE_CAPABILITIES)
        self.super_admins = set(super_admins or ())

    def _granted(self, actor: Actor) -> set[str]:
        caps: set[str] = set()
        for role in actor.roles:
            caps |= self.role_caps.get(role, frozenset())
        return caps

    def can(self, actor: Actor, capability: str, post_id: int | None = None) -> bool:
        if not actor.is_authenticated:
            return False
        if actor.user_id in self.super_admins:
            return True
        if post_id is None:
            return capability in self._granted(actor)

        post = self.store.get_post(post_id)
        if post is None:
            return False
        type_obj = self.store.get_post_type(post.post_type)
        if type_obj is None or capability != type_obj.edit_post_cap:
            return capability in self._granted(actor)
        granted = self._granted(actor)
        if type_obj.edit_posts_cap not in granted:
            return False
        return post.author == actor.user_id or type_obj.edit_others_cap in granted
