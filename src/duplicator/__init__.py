"""Post duplication engine.

Creates copies of stored posts under a configurable policy: what to
copy, who may copy, and which extension hooks see or rewrite the copy.
"""

from duplicator.duplicator import Duplicator
from duplicator.hooks import HookRegistry
from duplicator.models import (
    Actor,
    BulkDuplicationEntry,
    DuplicationError,
    DuplicationResult,
    DuplicationStage,
    ErrorKind,
    Post,
    PostDraft,
    PostStatus,
)
from duplicator.permissions import CapabilityChecker, DuplicationGuard
from duplicator.policy import DuplicationPolicy, resolve_policy
from duplicator.services import DuplicatorService, create_service
from duplicator.store import JsonPostStore, StoreError

__version__ = "1.0.0"

__all__ = [
    "Actor",
    "BulkDuplicationEntry",
    "CapabilityChecker",
    "DuplicationError",
    "DuplicationGuard",
    "DuplicationPolicy",
    "DuplicationResult",
    "DuplicationStage",
    "Duplicator",
    "DuplicatorService",
    "ErrorKind",
    "HookRegistry",
    "JsonPostStore",
    "Post",
    "PostDraft",
    "PostStatus",
    "StoreError",
    "create_service",
    "resolve_policy",
]
