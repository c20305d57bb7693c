"""Post duplication domain models: pure Pydantic v2 data types.

No I/O and no business logic live here.  The store, the guard, the
projector and the orchestrator all exchange these types.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class PostStatus(StrEnum):
    """Lifecycle status of a post."""

    DRAFT = "draft"
    PENDING = "pending"
    PRIVATE = "private"
    PUBLISH = "publish"
    FUTURE = "future"
    TRASH = "trash"
    AUTO_DRAFT = "auto-draft"
    INHERIT = "inherit"


class ErrorKind(StrEnum):
    """Why a duplication (or a request for one) did not happen."""

    INVALID_POST = "invalid_post"
    PERMISSION_DENIED = "permission_denied"
    STORE_ERROR = "store_error"
    UNAUTHENTICATED_REQUEST = "unauthenticated_request"


class DuplicationStage(StrEnum):
    """Pipeline stages of a single duplication."""

    START = "start"
    VALIDATED = "validated"
    POLICY_RESOLVED = "policy_resolved"
    AUTHORIZED = "authorized"
    PROJECTED = "projected"
    INSERTED = "inserted"
    SATELLITES_APPLIED = "satellites_applied"
    DONE = "done"
    REJECTED = "rejected"
    FAILED = "failed"


REVISION_TYPE = "revision"


class Post(BaseModel):
    """A stored content item."""

    id: int
    post_type: str = "post"
    title: str = ""
    content: str = ""
    excerpt: str = ""
    status: PostStatus = PostStatus.DRAFT
    author: int = 0
    date: str = ""
    date_gmt: str = ""
    parent: int = 0
    menu_order: int = 0
    comment_status: str = "open"
    ping_status: str = "open"
    password: str = ""


class PostDraft(BaseModel):
    """Attributes of a post that does not exist yet.

    ``post_type``, ``status`` and ``parent`` are required so that a draft
    is always a complete record, even when nothing else was copied.
    """

    post_type: str
    status: PostStatus
    parent: int
    title: str = ""
    content: str | None = None
    excerpt: str | None = None
    author: int = 0
    date: str | None = None
    date_gmt: str | None = None
    menu_order: int = 0
    comment_status: str = "open"
    ping_status: str = "open"
    password: str = ""


class MetaEntry(BaseModel):
    """A single key/value metadata row; ``value`` is the serialized form."""

    key: str
    value: str


class User(BaseModel):
    """A registered user known to the store."""

    id: int
    login: str
    roles: list[str] = Field(default_factory=list)


class PostType(BaseModel):
    """A registered post type and the capabilities guarding it."""

    name: str
    edit_posts_cap: str = ""
    edit_post_cap: str = ""
    edit_others_cap: str = ""
    taxonomies: list[str] = Field(default_factory=list)

    def model_post_init(self, __context: object) -> None:
        plural = f"{self.name}s"
        if not self.edit_posts_cap:
            self.edit_posts_cap = f"edit_{plural}"
        if not self.edit_post_cap:
            self.edit_post_cap = f"edit_{self.name}"
        if not self.edit_others_cap:
            self.edit_others_cap = f"edit_others_{plural}"


class Actor(BaseModel):
    """The identity performing an action.

    ``user_id == 0`` is the anonymous visitor.  Capability checks are not
    carried here; they are answered by a ``CapabilityChecker``.
    """

    user_id: int = 0
    roles: frozenset[str] = Field(default_factory=frozenset)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id > 0

    @classmethod
    def from_user(cls, user: User) -> Actor:
        return cls(user_id=user.id, roles=frozenset(user.roles))


class DuplicationError(BaseModel):
    """A typed failure returned by the engine or an entry adapter."""

    kind: ErrorKind
    message: str


class DuplicationResult(BaseModel):
    """Outcome of one ``Duplicator.duplicate`` call."""

    source_id: int
    new_id: int | None = None
    error: DuplicationError | None = None
    stage: DuplicationStage = DuplicationStage.START
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None and self.new_id is not None


class BulkDuplicationEntry(BaseModel):
    """Per-id row of a bulk duplication report."""

    id: int
    success: bool
    new_id: int | None = None
    message: str = ""
    kind: ErrorKind | None = None
