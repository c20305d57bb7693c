"""Wire the duplication components into one explicitly built service."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path

from duplicator.config import DuplicatorConfig
from duplicator.duplicator import Duplicator
from duplicator.hooks import HookRegistry
from duplicator.permissions import CapabilityChecker, DuplicationGuard
from duplicator.roles import RoleCapabilities
from duplicator.settings import SettingsStore
from duplicator.store import JsonPostStore
from duplicator.tokens import DEFAULT_LIFETIME_SECONDS, TokenSigner

logger = logging.getLogger(__name__)


@dataclass
class DuplicatorService:
    """Everything a caller needs, built once and passed around."""

    store: JsonPostStore
    settings: SettingsStore
    hooks: HookRegistry
    guard: DuplicationGuard
    duplicator: Duplicator
    signer: TokenSigner


def create_service(
    config: DuplicatorConfig | None = None,
    *,
    store_dir: Path | None = None,
    capabilities: CapabilityChecker | None = None,
    hooks: HookRegistry | None = None,
) -> DuplicatorService:
    """Build the service from config.

    ``store_dir`` wins over ``config.store``; with neither, everything is
    kept in memory.  Without a configured token secret a random one is
    generated, so tokens only live as long as the process.
    """
    if store_dir is None and config is not None:
        store_dir = config.store_dir

    store = JsonPostStore(store_dir)
    settings = SettingsStore(store_dir)
    hooks = hooks or HookRegistry()

    secret = config.tokens.secret if config is not None else ""
    lifetime = config.tokens.lifetime_seconds if config is not None else DEFAULT_LIFETIME_SECONDS
    if not secret:
        logger.debug("No token secret configured, using an ephemeral one")
        secret = secrets.token_hex(32)
    signer = TokenSigner(secret, lifetime)

    guard = DuplicationGuard(
        store,
        capabilities or RoleCapabilities(store),
        settings.get_policy,
        hooks=hooks,
        signer=signer,
    )
    duplicator = Duplicator(store, guard, settings, hooks)
    return DuplicatorService(
        store=store,
        settings=settings,
        hooks=hooks,
        guard=guard,
        duplicator=duplicator,
        signer=signer,
    )
