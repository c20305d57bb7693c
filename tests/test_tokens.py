"""Tests for purpose-scoped request tokens."""

import jwt
import pytest
from duplicator.tokens import (
    ASYNC_ACTION,
    TokenSigner,
    duplicate_url,
    post_action,
)

SECRET = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(SECRET)


class TestTokenSigner:
    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenSigner("")

    def test_valid_token(self, signer: TokenSigner):
        token = signer.issue_for_post(10, user_id=1)
        assert signer.verify(token, post_action(10), 1) is True

    def test_bound_to_post(self, signer: TokenSigner):
        token = signer.issue_for_post(10, user_id=1)
        assert signer.verify(token, post_action(11), 1) is False

    def test_bound_to_user(self, signer: TokenSigner):
        token = signer.issue_for_post(10, user_id=1)
        assert signer.verify(token, post_action(10), 2) is False

    def test_post_token_not_valid_for_async(self, signer: TokenSigner):
        token = signer.issue_for_post(10, user_id=1)
        assert signer.verify(token, ASYNC_ACTION, 1) is False

    def test_async_token(self, signer: TokenSigner):
        token = signer.issue_async(user_id=1)
        assert signer.verify(token, ASYNC_ACTION, 1) is True
        assert signer.verify(token, post_action(10), 1) is False

    def test_expired_token(self):
        signer = TokenSigner(SECRET, lifetime=-10)
        token = signer.issue_async(user_id=1)
        assert signer.verify(token, ASYNC_ACTION, 1) is False

    def test_other_secret(self, signer: TokenSigner):
        other = TokenSigner("fedcba9876543210fedcba9876543210")
        token = other.issue_async(user_id=1)
        assert signer.verify(token, ASYNC_ACTION, 1) is False

    def test_garbage_and_empty(self, signer: TokenSigner):
        assert signer.verify("not-a-token", ASYNC_ACTION, 1) is False
        assert signer.verify("", ASYNC_ACTION, 1) is False

    def test_missing_claims(self, signer: TokenSigner):
        token = jwt.encode({"aud": "duplicator", "action": ASYNC_ACTION}, SECRET, algorithm="HS256")
        assert signer.verify(token, ASYNC_ACTION, 1) is False


class TestDuplicateUrl:
    def test_builds_query(self):
        url = duplicate_url("/wp-admin/admin.php", 5, "abc")
        assert url == "/wp-admin/admin.php?action=duplicate_post&post_id=5&_token=abc"

    def test_appends_to_existing_query(self):
        url = duplicate_url("/admin.php?page=x", 5, "abc")
        assert url.startswith("/admin.php?page=x&action=duplicate_post")
