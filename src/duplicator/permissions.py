"""Authorization guard and request-token checks for duplication."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from duplicator.hooks import HookRegistry
from duplicator.models import Actor
from duplicator.policy import DuplicationPolicy
from duplicator.store import PostRepository
from duplicator.tokens import ASYNC_ACTION, TokenSigner, post_action

logger = logging.getLogger(__name__)

SUPER_ADMIN_CAP = "manage_network"


class CapabilityChecker(Protocol):
    """Answers capability questions for an actor; supplied by the environment."""

    def can(self, actor: Actor, capability: str, post_id: int | None = None) -> bool: ...


class DuplicationGuard:
    """Decides whether an actor may duplicate a post or a post type."""

    def __init__(
        self,
        store: PostRepository,
        capabilities: CapabilityChecker,
        policy_provider: Callable[[], DuplicationPolicy],
        hooks: HookRegistry | None = None,
        signer: TokenSigner | None = None,
    ) -> None:
        self.store = store
        self.capabilities = capabilities
        self.policy_provider = policy_provider
        self.hooks = hooks or HookRegistry()
        self.signer = signer

    def enabled_post_types(self, policy: DuplicationPolicy | None = None) -> list[str]:
        policy = policy or self.policy_provider()
        return list(self.hooks.apply_filters("enabled_post_types", list(policy.enabled_post_types)))

    def is_post_type_enabled(self, post_type: str, policy: DuplicationPolicy | None = None) -> bool:
        return post_type in self.enabled_post_types(policy)

    def is_role_allowed(self, actor: Actor, policy: DuplicationPolicy | None = None) -> bool:
        """Check the role gate; super admins always pass."""
        if not actor.is_authenticated:
            return False
        if self.capabilities.can(actor, SUPER_ADMIN_CAP):
            return True
        policy = policy or self.policy_provider()
        return bool(actor.roles & set(policy.allowed_roles))

    def can_duplicate(
        self,
        actor: Actor,
        post_id: int | None = None,
        post_type: str = "",
        policy: DuplicationPolicy | None = None,
    ) -> bool:
        """Return whether ``actor`` may duplicate ``post_id`` (or any ``post_type``).

        When ``post_id`` is given the stored post's type is used and
        ``post_type`` is ignored.  ``policy`` defaults to the stored settings.
        """
        if not actor.is_authenticated:
            return False

        if post_id:
            post = self.store.get_post(post_id)
            if post is None:
                return False
            post_type = post.post_type

        policy = policy or self.policy_provider()
        if not self.is_post_type_enabled(post_type, policy):
            logger.debug("Post type %r is not enabled for duplication", post_type)
            return False

        type_obj = self.store.get_post_type(post_type)
        if type_obj is None:
            return False

        if not self.capabilities.can(actor, type_obj.edit_posts_cap):
            return False

        if post_id and not self.capabilities.can(actor, type_obj.edit_post_cap, post_id):
            return False

        if not self.is_role_allowed(actor, policy):
            return False

        return bool(self.hooks.apply_filters("user_can_duplicate", True, post_id or 0, post_type))

    # ── Request tokens ───────────────────────────────────────────

    def verify_token(self, post_id: int, token: str, actor: Actor) -> bool:
        """Verify a redirect-style token issued for ``post_id``."""
        if self.signer is None:
            return False
        return self.signer.verify(token, post_action(post_id), actor.user_id)

    def verify_async_token(self, token: str, actor: Actor) -> bool:
        """Verify a token issued for the async duplication channel."""
        if self.signer is None:
            return False
        return self.signer.verify(token, ASYNC_ACTION, actor.user_id)
