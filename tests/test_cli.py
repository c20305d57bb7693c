"""Smoke tests for the CLI."""

from pathlib import Path

import pytest
from duplicator.cli import app
from duplicator.models import PostStatus
from duplicator.store import JsonPostStore
from typer.testing import CliRunner

from tests.conftest import ADMIN, SUBSCRIBER, make_post


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def store_dir(tmp_path: Path, monkeypatch) -> Path:
    """A store directory holding two users and one post."""
    for key in ("DUPLICATOR_STORE_DIR", "DUPLICATOR_TOKEN_SECRET", "DUPLICATOR_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    store = JsonPostStore(tmp_path)
    store.add_user(ADMIN)
    store.add_user(SUBSCRIBER)
    make_post(store, title="Release plan")
    return tmp_path


def _invoke(runner: CliRunner, store_dir: Path, *args: str):
    return runner.invoke(
        app, ["--config", str(store_dir / "none.toml"), "--store", str(store_dir), *args]
    )


class TestCLI:
    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "duplicate" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "duplicator" in result.output


class TestDuplicateCommand:
    def test_duplicates(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "duplicate", "1", "--user", "1")

        assert result.exit_code == 0, result.output
        copy = JsonPostStore(store_dir).get_post(2)
        assert copy is not None
        assert copy.title == "Release plan (Copy)"

    def test_overrides(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(
            runner,
            store_dir,
            "duplicate",
            "1",
            "--user",
            "1",
            "--status",
            "pending",
            "--suffix",
            "(v2)",
            "--no-content",
        )

        assert result.exit_code == 0, result.output
        copy = JsonPostStore(store_dir).get_post(2)
        assert copy.title == "Release plan (v2)"
        assert copy.status == PostStatus.PENDING
        assert copy.content == ""

    def test_permission_denied(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "duplicate", "1", "--user", str(SUBSCRIBER.id))
        assert result.exit_code == 1
        assert "permission_denied" in result.output

    def test_unknown_user(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "duplicate", "1", "--user", "77")
        assert result.exit_code == 1
        assert "Unknown user" in result.output


class TestBulkCommand:
    def test_continues_past_failures(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "bulk", "1", "404", "1", "--user", "1")

        assert result.exit_code == 0, result.output
        assert "Invalid post ID." in result.output
        assert len(JsonPostStore(store_dir).list_posts()) == 3


class TestCanDuplicateCommand:
    def test_yes(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "can-duplicate", "--user", "1", "--post", "1")
        assert result.exit_code == 0
        assert "yes" in result.output

    def test_no(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "can-duplicate", "--user", str(SUBSCRIBER.id))
        assert result.exit_code == 1


class TestTokenCommand:
    def test_prints_link(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "token", "1", "--user", "1")
        assert result.exit_code == 0
        assert "action=duplicate_post&post_id=1&_token=" in result.output


class TestSettingsCommands:
    def test_show(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "settings", "show")
        assert result.exit_code == 0
        assert "title_suffix" in result.output

    def test_set_and_reset(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "settings", "set", "default_status", "pending")
        assert result.exit_code == 0, result.output
        assert '"pending"' in result.output

        _invoke(runner, store_dir, "duplicate", "1", "--user", "1")
        assert JsonPostStore(store_dir).get_post(2).status == PostStatus.PENDING

        result = _invoke(runner, store_dir, "settings", "reset")
        assert result.exit_code == 0

    def test_set_unknown_key(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "settings", "set", "colour", "red")
        assert result.exit_code == 1

    def test_set_rejected_value(self, runner: CliRunner, store_dir: Path) -> None:
        result = _invoke(runner, store_dir, "settings", "set", "default_status", "trash")
        assert result.exit_code == 0
        assert "rejected" in result.output
