"""Time-boxed, purpose-scoped anti-forgery tokens.

Tokens are HS256 JWTs carrying the action they authorize and the user
they were issued to.  Nothing is stored server-side: a token is valid
until it expires.
"""

from __future__ import annotations

import logging
import time
from urllib.parse import urlencode

import jwt

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME_SECONDS = 24 * 60 * 60
ASYNC_ACTION = "ajax_duplicate"
DUPLICATE_ACTION = "duplicate_post"
_ALGORITHM = "HS256"
_AUDIENCE = "duplicator"


def post_action(post_id: int) -> str:
    """Action name a redirect-style token for ``post_id`` is bound to."""
    return f"{DUPLICATE_ACTION}_{post_id}"


class TokenSigner:
    """Issue and verify tokens with a shared secret."""

    def __init__(self, secret: str, lifetime: int = DEFAULT_LIFETIME_SECONDS) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.lifetime = lifetime

    def issue(self, action: str, user_id: int) -> str:
        """Create a token for ``action`` valid for ``self.lifetime`` seconds."""
        iat = int(time.time())
        payload = {
            "action": action,
            "uid": user_id,
            "iat": iat,
            "exp": iat + self.lifetime,
            "aud": _AUDIENCE,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str, action: str, user_id: int) -> bool:
        """Check signature, expiry, action and user of a token."""
        if not token:
            return False
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=_AUDIENCE,
                options={"require": ["exp", "iat", "action", "uid"]},
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected token for %s: %s", action, exc)
            return False
        return claims.get("action") == action and claims.get("uid") == user_id

    # ── Purpose-scoped helpers ───────────────────────────────────

    def issue_for_post(self, post_id: int, user_id: int) -> str:
        return self.issue(post_action(post_id), user_id)

    def issue_async(self, user_id: int) -> str:
        return self.issue(ASYNC_ACTION, user_id)


def duplicate_url(base_url: str, post_id: int, token: str) -> str:
    """Build the redirect-style link that duplicates ``post_id``."""
    query = urlencode({"action": DUPLICATE_ACTION, "post_id": post_id, "_token": token})
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"
