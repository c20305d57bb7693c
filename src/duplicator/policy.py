"""Duplication policy: defaults, merging and sanitization.

Loading order: hard-coded defaults → stored settings → per-call overrides.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from duplicator.models import PostStatus

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_META_KEYS = ("_edit_lock", "_edit_last", "_wp_old_slug", "_wp_old_date")

# Statuses an operator may choose for new copies
ALLOWED_DEFAULT_STATUSES = (
    PostStatus.DRAFT,
    PostStatus.PENDING,
    PostStatus.PRIVATE,
    PostStatus.PUBLISH,
)

BOOLEAN_OPTIONS = (
    "duplicate_author",
    "duplicate_date",
    "duplicate_status",
    "duplicate_excerpt",
    "duplicate_content",
    "duplicate_thumbnail",
    "duplicate_taxonomies",
    "duplicate_meta",
    "duplicate_menu_order",
    "show_in_admin_bar",
    "show_in_gutenberg",
)


class RedirectAfter(StrEnum):
    """Where the redirect-style caller lands after a duplication."""

    LIST = "list"
    EDIT = "edit"


class DuplicationPolicy(BaseModel):
    """Effective configuration for one duplication call."""

    model_config = ConfigDict(frozen=True)

    enabled_post_types: tuple[str, ...] = ("post", "page")
    default_status: PostStatus = PostStatus.DRAFT
    title_suffix: str = "(Copy)"
    redirect_after: RedirectAfter = RedirectAfter.LIST
    duplicate_author: bool = True
    duplicate_date: bool = False
    duplicate_status: bool = False
    duplicate_excerpt: bool = True
    duplicate_content: bool = True
    duplicate_thumbnail: bool = True
    duplicate_taxonomies: bool = True
    duplicate_meta: bool = True
    duplicate_menu_order: bool = True
    show_in_admin_bar: bool = True
    show_in_gutenberg: bool = False
    allowed_roles: tuple[str, ...] = ("administrator", "editor")
    excluded_meta_keys: tuple[str, ...] = Field(default=DEFAULT_EXCLUDED_META_KEYS)


_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(field.annotation)
    for name, field in DuplicationPolicy.model_fields.items()
}


def default_policy() -> DuplicationPolicy:
    """Return the policy used when nothing is stored or overridden."""
    return DuplicationPolicy()


def _coerce(key: str, value: Any) -> tuple[bool, Any]:
    """Validate a single policy value; return ``(ok, value)``."""
    adapter = _ADAPTERS.get(key)
    if adapter is None:
        logger.debug("Ignoring unknown policy key %r", key)
        return False, None
    if key in ("enabled_post_types", "allowed_roles", "excluded_meta_keys") and isinstance(
        value, str
    ):
        # A bare string would otherwise validate as a tuple of characters
        logger.debug("Ignoring malformed value for %s: %r", key, value)
        return False, None
    try:
        return True, adapter.validate_python(value)
    except ValidationError:
        logger.debug("Ignoring malformed value for %s: %r", key, value)
        return False, None


def _layer(base: dict[str, Any], layer: Mapping[str, Any] | DuplicationPolicy | None) -> None:
    if layer is None:
        return
    if isinstance(layer, DuplicationPolicy):
        base.update(layer.model_dump())
        return
    for key, value in layer.items():
        ok, coerced = _coerce(key, value)
        if ok:
            base[key] = coerced


def resolve_policy(
    stored: Mapping[str, Any] | DuplicationPolicy | None,
    overrides: Mapping[str, Any] | None = None,
) -> DuplicationPolicy:
    """Merge stored settings and per-call overrides into an effective policy.

    Keys in ``overrides`` replace the stored ones; keys missing from both
    fall back to the model defaults.  Malformed values are treated as if
    they were absent, so this never raises.
    """
    merged = default_policy().model_dump()
    _layer(merged, stored)
    _layer(merged, overrides)
    return DuplicationPolicy.model_validate(merged)


# ---------------------------------------------------------------------------
# Settings form sanitization
# ---------------------------------------------------------------------------

_KEY_RE = re.compile(r"[^a-z0-9_\-]")
_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_key(value: str) -> str:
    """Lower-case and strip everything but ``[a-z0-9_-]``."""
    return _KEY_RE.sub("", str(value).lower())


def sanitize_text(value: str) -> str:
    """Strip tags, collapse whitespace and trim."""
    return " ".join(_TAG_RE.sub("", str(value)).split())


def _is_checked(value: Any) -> bool:
    """Form checkbox semantics: "0", "" and "false" are unchecked."""
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false"}
    return bool(value)


def sanitize_settings(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Clean a submitted settings map before it is persisted.

    Boolean options are always present in the output; an absent option
    means an unchecked box and becomes ``False``.
    """
    sanitized: dict[str, Any] = {}

    types = raw.get("enabled_post_types")
    if isinstance(types, list | tuple):
        sanitized["enabled_post_types"] = [sanitize_key(t) for t in types]

    status = raw.get("default_status")
    if status in {s.value for s in ALLOWED_DEFAULT_STATUSES}:
        sanitized["default_status"] = str(status)

    if "title_suffix" in raw:
        sanitized["title_suffix"] = sanitize_text(raw["title_suffix"])

    redirect = raw.get("redirect_after")
    if redirect in {r.value for r in RedirectAfter}:
        sanitized["redirect_after"] = str(redirect)

    for option in BOOLEAN_OPTIONS:
        sanitized[option] = _is_checked(raw.get(option))

    roles = raw.get("allowed_roles")
    if isinstance(roles, list | tuple):
        sanitized["allowed_roles"] = [sanitize_key(r) for r in roles]

    return sanitized
