"""CLI interface for the post duplicator."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from duplicator.config import load_config, merge_cli_overrides
from duplicator.models import Actor
from duplicator.policy import DuplicationPolicy
from duplicator.services import DuplicatorService, create_service
from duplicator.tokens import duplicate_url

app = typer.Typer(
    name="duplicator",
    help="Duplicate posts with a configurable copy policy.",
)
settings_app = typer.Typer(help="Show or change the stored duplication settings.")
app.add_typer(settings_app, name="settings")

console = Console()

_state: dict[str, Any] = {}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from duplicator import __version__

        console.print(f"duplicator {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .duplicator.toml file."),
    ] = None,
    store_dir: Annotated[
        Optional[Path],
        typer.Option("--store", "-s", help="Directory holding the post store."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING...)."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Duplicator - copy posts with their metadata, terms and media."""
    config = merge_cli_overrides(
        load_config(config_path),
        store_dir=str(store_dir) if store_dir is not None else None,
        log_level=log_level,
    )
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    _state.clear()
    _state["config"] = config


def _service() -> DuplicatorService:
    if "service" not in _state:
        _state["service"] = create_service(_state.get("config"))
    return _state["service"]


def _actor(service: DuplicatorService, user_id: int) -> Actor:
    user = service.store.get_user(user_id)
    if user is None:
        console.print(f"[red]Unknown user: {user_id}[/red]")
        raise typer.Exit(1)
    return Actor.from_user(user)


def _parse_value(raw: str) -> Any:
    """Interpret a settings value given on the command line."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@app.command()
def duplicate(
    post_id: Annotated[int, typer.Argument(help="Id of the post to copy.")],
    user: Annotated[int, typer.Option("--user", "-u", help="Acting user id.")],
    status: Annotated[
        Optional[str], typer.Option("--status", help="Status of the copy.")
    ] = None,
    suffix: Annotated[
        Optional[str], typer.Option("--suffix", help="Title suffix of the copy.")
    ] = None,
    content: Annotated[
        Optional[bool], typer.Option("--content/--no-content", help="Copy the body.")
    ] = None,
    meta: Annotated[
        Optional[bool], typer.Option("--meta/--no-meta", help="Copy custom fields.")
    ] = None,
    taxonomies: Annotated[
        Optional[bool],
        typer.Option("--taxonomies/--no-taxonomies", help="Copy categories and tags."),
    ] = None,
) -> None:
    """Duplicate a single post."""
    service = _service()
    actor = _actor(service, user)
    overrides = {
        key: value
        for key, value in {
            "default_status": status,
            "title_suffix": suffix,
            "duplicate_content": content,
            "duplicate_meta": meta,
            "duplicate_taxonomies": taxonomies,
        }.items()
        if value is not None
    }

    result = service.duplicator.duplicate(post_id, actor=actor, overrides=overrides or None)
    if result.error is not None:
        console.print(f"[red]{result.error.kind}:[/red] {result.error.message}")
        raise typer.Exit(1)

    console.print(f"[green]Duplicated post {post_id} as {result.new_id}[/green]")
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")


@app.command()
def bulk(
    post_ids: Annotated[list[int], typer.Argument(help="Ids of the posts to copy.")],
    user: Annotated[int, typer.Option("--user", "-u", help="Acting user id.")],
) -> None:
    """Duplicate several posts, continuing past failures."""
    service = _service()
    actor = _actor(service, user)
    entries = service.duplicator.bulk_duplicate(post_ids, actor=actor)

    table = Table(title="Bulk duplication")
    table.add_column("Post")
    table.add_column("Copy")
    table.add_column("Result")
    for entry in entries:
        style = "green" if entry.success else "red"
        table.add_row(
            str(entry.id),
            str(entry.new_id or "-"),
            f"[{style}]{entry.message}[/{style}]",
        )
    console.print(table)

    if not any(e.success for e in entries):
        raise typer.Exit(1)


@app.command(name="can-duplicate")
def can_duplicate(
    user: Annotated[int, typer.Option("--user", "-u", help="Acting user id.")],
    post: Annotated[Optional[int], typer.Option("--post", help="Post id.")] = None,
    post_type: Annotated[str, typer.Option("--type", help="Post type.")] = "post",
) -> None:
    """Tell whether a user may duplicate a post or a post type."""
    service = _service()
    allowed = service.guard.can_duplicate(_actor(service, user), post, post_type)
    console.print("yes" if allowed else "no")
    if not allowed:
        raise typer.Exit(1)


@app.command()
def token(
    post_id: Annotated[int, typer.Argument(help="Post the link duplicates.")],
    user: Annotated[int, typer.Option("--user", "-u", help="User the token is for.")],
    admin_url: Annotated[
        str, typer.Option("--admin-url", help="Base URL of the admin action endpoint.")
    ] = "/admin.php",
) -> None:
    """Print a signed duplicate link for a post."""
    service = _service()
    actor = _actor(service, user)
    signed = service.signer.issue_for_post(post_id, actor.user_id)
    console.print(duplicate_url(admin_url, post_id, signed), soft_wrap=True)


@settings_app.command("show")
def settings_show() -> None:
    """Print the effective settings."""
    policy = _service().settings.get_policy()
    table = Table(title="Duplication settings")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in policy.model_dump(mode="json").items():
        table.add_row(key, json.dumps(value))
    console.print(table)


@settings_app.command("set")
def settings_set(
    key: Annotated[str, typer.Argument(help="Setting name.")],
    value: Annotated[str, typer.Argument(help="New value (JSON or plain text).")],
) -> None:
    """Change one setting."""
    if key not in DuplicationPolicy.model_fields:
        console.print(f"[red]Unknown setting: {key}[/red]")
        raise typer.Exit(1)
    saved = _service().settings.update(key, _parse_value(value))
    if key in saved:
        console.print(f"{key} = {json.dumps(saved[key])}")
    else:
        console.print(f"[yellow]{key} was rejected; the default applies[/yellow]")


@settings_app.command("reset")
def settings_reset() -> None:
    """Remove stored settings so the defaults apply."""
    _service().settings.reset()
    console.print("Settings reset to defaults.")
