"""Duplication orchestrator.

Runs one duplication through its stages::

    start → validated → policy_resolved → authorized → projected
          → inserted → satellites_applied → done

Validation and authorization failures end in ``rejected``; a refused
primary insert ends in ``failed``.  Everything after the insert is
fail-open: once the new post exists the duplication has succeeded, even
if some satellite data could not be copied.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from duplicator.hooks import HookRegistry
from duplicator.models import (
    REVISION_TYPE,
    Actor,
    BulkDuplicationEntry,
    DuplicationError,
    DuplicationResult,
    DuplicationStage,
    ErrorKind,
    PostStatus,
)
from duplicator.permissions import DuplicationGuard
from duplicator.policy import resolve_policy
from duplicator.projector import project
from duplicator.satellites import apply_satellites
from duplicator.settings import SettingsStore
from duplicator.store import PostRepository, StoreError

logger = logging.getLogger(__name__)

MSG_INVALID_POST = "Invalid post ID."
MSG_REVISION = "Cannot duplicate revisions."
MSG_PERMISSION_DENIED = "You do not have permission to duplicate this post."
MSG_SUCCESS = "Post duplicated successfully."


class Duplicator:
    """Creates copies of posts according to the stored settings."""

    def __init__(
        self,
        store: PostRepository,
        guard: DuplicationGuard,
        settings: SettingsStore,
        hooks: HookRegistry | None = None,
    ) -> None:
        self.store = store
        self.guard = guard
        self.settings = settings
        self.hooks = hooks or guard.hooks

    def _reject(
        self, post_id: int, kind: ErrorKind, message: str, stage: DuplicationStage
    ) -> DuplicationResult:
        logger.info("Duplication of post %d rejected at %s: %s", post_id, stage, kind)
        return DuplicationResult(
            source_id=post_id,
            error=DuplicationError(kind=kind, message=message),
            stage=DuplicationStage.REJECTED,
        )

    def duplicate(
        self,
        post_id: int,
        *,
        actor: Actor,
        overrides: Mapping[str, Any] | None = None,
    ) -> DuplicationResult:
        """Duplicate one post on behalf of ``actor``.

        ``overrides`` replace stored settings for this call only.  Returns
        a result carrying the new post id or a typed error; never raises
        for invalid input, refused permission or a refused insert.
        """
        stage = DuplicationStage.START
        source = self.store.get_post(post_id)
        if source is None or source.status == PostStatus.AUTO_DRAFT:
            return self._reject(post_id, ErrorKind.INVALID_POST, MSG_INVALID_POST, stage)
        if source.post_type == REVISION_TYPE:
            return self._reject(post_id, ErrorKind.INVALID_POST, MSG_REVISION, stage)
        stage = DuplicationStage.VALIDATED

        policy = resolve_policy(self.settings.get_policy(), overrides)
        stage = DuplicationStage.POLICY_RESOLVED

        if not self.guard.can_duplicate(actor, post_id, source.post_type, policy=policy):
            return self._reject(
                post_id, ErrorKind.PERMISSION_DENIED, MSG_PERMISSION_DENIED, stage
            )
        stage = DuplicationStage.AUTHORIZED

        self.hooks.do_action("before_duplicate", post_id, source.model_copy(deep=True), policy)

        try:
            draft = project(source, policy, actor, self.hooks)
        except ValidationError as exc:
            logger.warning("Copy of post %d rewritten into an invalid record: %s", post_id, exc)
            return DuplicationResult(
                source_id=post_id,
                error=DuplicationError(kind=ErrorKind.STORE_ERROR, message=str(exc)),
                stage=DuplicationStage.FAILED,
            )
        stage = DuplicationStage.PROJECTED
        logger.debug("Post %d projected as %s", post_id, draft.model_dump(exclude_none=True))

        try:
            new_id = self.store.insert_post(draft)
        except StoreError as exc:
            logger.warning("Insert of copy of post %d failed: %s", post_id, exc)
            return DuplicationResult(
                source_id=post_id,
                error=DuplicationError(kind=ErrorKind.STORE_ERROR, message=str(exc)),
                stage=DuplicationStage.FAILED,
            )
        stage = DuplicationStage.INSERTED

        warnings = apply_satellites(self.store, source, new_id, policy, self.hooks)
        stage = DuplicationStage.SATELLITES_APPLIED

        self.hooks.do_action(
            "after_duplicate", new_id, post_id, source.model_copy(deep=True), policy
        )
        stage = DuplicationStage.DONE

        logger.info("Duplicated post %d as %d", post_id, new_id)
        return DuplicationResult(source_id=post_id, new_id=new_id, stage=stage, warnings=warnings)

    def bulk_duplicate(
        self, post_ids: Iterable[int], *, actor: Actor
    ) -> list[BulkDuplicationEntry]:
        """Duplicate each post in order; one failure never stops the batch."""
        entries: list[BulkDuplicationEntry] = []
        for post_id in post_ids:
            try:
                result = self.duplicate(int(post_id), actor=actor)
            except Exception as exc:
                logger.warning("Duplication of post %s raised", post_id, exc_info=True)
                entries.append(
                    BulkDuplicationEntry(
                        id=int(post_id),
                        success=False,
                        message=str(exc),
                        kind=ErrorKind.STORE_ERROR,
                    )
                )
                continue
            entries.append(
                BulkDuplicationEntry(
                    id=int(post_id),
                    success=result.success,
                    new_id=result.new_id,
                    message=result.error.message if result.error else MSG_SUCCESS,
                    kind=result.error.kind if result.error else None,
                )
            )
        succeeded = sum(1 for e in entries if e.success)
        logger.info("Bulk duplication: %d of %d succeeded", succeeded, len(entries))
        return entries
