"""Typer CLI entrypoint for meatspace."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, NoReturn, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .engine import Message, PullResult, ThreadPoolManager
from .engine.subscriptions import normalise_url
from .errors import MeatspaceError
from .infra import SQLiteManager
from .logging_conf import (
    MAIN_LOG,
    available_subscription_logs,
    configure_logging,
    log_dir,
    subscription_log_path,
    tail_log,
)
from .orchestrator import Orchestrator
from .scheduler import APSchedulerAdapter

app = typer.Typer(help="meatspace command line", no_args_is_help=True, rich_markup_mode=None)
post_app = typer.Typer(name="post", help="Create and manage messages.", no_args_is_help=True)
sub_app = typer.Typer(name="sub", help="Manage feed subscriptions.", no_args_is_help=True)
feed_app = typer.Typer(name="feed", help="Inspect or write the public feed.", no_args_is_help=True)
owner_app = typer.Typer(name="owner", help="Owner identity settings.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Inspect log files.", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    scheduler: APSchedulerAdapter
    orchestrator: Orchestrator
    storage: SQLiteManager


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    scheduler = APSchedulerAdapter()
    thread_pool = ThreadPoolManager(global_config.thread_pool_workers)
    storage = SQLiteManager()
    configure_logging(verbose=verbose)
    orchestrator = Orchestrator(
        config_repository=repository,
        scheduler=scheduler,
        thread_pool=thread_pool,
        storage=storage,
    )
    return AppState(
        repository=repository,
        scheduler=scheduler,
        orchestrator=orchestrator,
        storage=storage,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _fail(exc: MeatspaceError) -> NoReturn:
    console.print(f"{exc.code}: {exc.message}", style="red")
    raise typer.Exit(code=1)


def _parse_links(links: Sequence[str]) -> list[dict[str, str]]:
    parsed = []
    for raw in links:
        title, sep, url = raw.partition("=")
        if not sep:
            title, url = "", raw
        parsed.append({"title": title.strip(), "url": url.strip()})
    return parsed


def _render_messages_table(messages: Iterable[Message], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Author", style="magenta")
    table.add_column("Message", overflow="fold")
    table.add_column("Flags", style="yellow")
    table.add_column("Updated", style="green")
    for message in messages:
        flags = []
        if message.meta.is_private:
            flags.append("private")
        if message.meta.is_shared:
            flags.append("shared")
        table.add_row(
            str(message.id),
            message.username,
            message.content.message,
            ",".join(flags) or "-",
            message.content.updated.isoformat(timespec="seconds"),
        )
    return table


def _render_pull_table(outcomes: dict[str, PullResult | MeatspaceError]) -> Table:
    table = Table(title="Pull results", box=box.SIMPLE_HEAD)
    table.add_column("Subscription", style="cyan", overflow="fold")
    table.add_column("New", justify="right", style="green")
    table.add_column("Duplicates", justify="right")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Error", overflow="fold", style="red")
    for url, outcome in outcomes.items():
        if isinstance(outcome, PullResult):
            summary = outcome.summary()
            table.add_row(
                url, str(summary["created"]), str(summary["duplicates"]), str(summary["failed"]), ""
            )
        else:
            table.add_row(url, "0", "0", "-", f"{outcome.code}: {outcome.message}")
    return table


def _print_json(payload: object) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False))


app.add_typer(post_app, name="post")
app.add_typer(sub_app, name="sub")
app.add_typer(feed_app, name="feed")
app.add_typer(owner_app, name="owner")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")
) -> None:
    ctx.obj = build_state(verbose)


@post_app.command("create", help="Create a message.")
def post_create(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Message text."),
    link: Optional[List[str]] = typer.Option(None, "--link", help="Attach a link as TITLE=URL (repeatable)."),
    location: str = typer.Option("", "--location", help="Free-form location."),
    private: bool = typer.Option(False, "--private", help="Keep the message out of the public feed."),
) -> None:
    state = _get_state(ctx)
    draft = {
        "content": {"message": text, "urls": _parse_links(link or [])},
        "meta": {"location": location, "isPrivate": private},
    }
    try:
        message = state.orchestrator.create(draft)
    except MeatspaceError as exc:
        _fail(exc)
    console.print(f"Created message {message.id}.", style="green")


@post_app.command("show", help="Show one message as JSON.")
def post_show(ctx: typer.Context, message_id: int = typer.Argument(..., help="Message id.")) -> None:
    state = _get_state(ctx)
    try:
        message = state.orchestrator.get(message_id)
    except MeatspaceError as exc:
        _fail(exc)
    _print_json(message.to_wire())


@post_app.command("edit", help="Edit a message's text or visibility.")
def post_edit(
    ctx: typer.Context,
    message_id: int = typer.Argument(..., help="Message id."),
    text: Optional[str] = typer.Option(None, "--text", help="Replace the message text."),
    private: Optional[bool] = typer.Option(None, "--private/--public", help="Change visibility."),
) -> None:
    state = _get_state(ctx)
    try:
        message = state.orchestrator.get(message_id)
        if text is not None:
            message.content.message = text
        if private is not None:
            message.meta.is_private = private
        updated = state.orchestrator.update(message)
    except MeatspaceError as exc:
        _fail(exc)
    console.print(f"Updated message {updated.id}.", style="green")


@post_app.command("delete", help="Delete a message.")
def post_delete(
    ctx: typer.Context,
    message_id: int = typer.Argument(..., help="Message id."),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    state = _get_state(ctx)
    if not yes and not typer.confirm(f"Delete message {message_id}?", default=False):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    try:
        state.orchestrator.delete(message_id)
    except MeatspaceError as exc:
        _fail(exc)
    console.print(f"Deleted message {message_id}.", style="green")


@post_app.command("list", help="List every stored message, private ones included.")
def post_list(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", min=0, help="Skip this many messages."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N messages."),
) -> None:
    state = _get_state(ctx)
    messages = state.orchestrator.list_all(offset, limit)
    if not messages:
        console.print("No messages yet.", style="dim")
        return
    console.print(_render_messages_table(messages, f"Messages · {len(messages)}"))


@sub_app.command("add", help="Subscribe to a remote feed URL.")
def sub_add(ctx: typer.Context, url: str = typer.Argument(..., help="Feed URL.")) -> None:
    state = _get_state(ctx)
    try:
        target = state.orchestrator.subscribe(url)
    except MeatspaceError as exc:
        _fail(exc)
    console.print(f"Subscribed to {target}.", style="green")


@sub_app.command("remove", help="Unsubscribe from a feed URL.")
def sub_remove(ctx: typer.Context, url: str = typer.Argument(..., help="Feed URL.")) -> None:
    state = _get_state(ctx)
    state.orchestrator.unsubscribe(url)
    console.print(f"Unsubscribed from {url}.", style="green")


@sub_app.command("list", help="List subscriptions and the poll schedule.")
def sub_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    urls = state.orchestrator.subscriptions()
    if not urls:
        console.print("No subscriptions. Use `meatspace sub add URL`.", style="yellow")
        raise typer.Exit(code=0)
    table = Table(title=f"Subscriptions · {len(urls)}", box=box.SIMPLE_HEAD)
    table.add_column("URL", style="cyan", overflow="fold")
    for url in urls:
        table.add_row(url)
    console.print(table)
    schedule = state.repository.load_global_config().poll_schedule
    console.print(f"Polled by `meatspace watch` on {schedule.type.value} schedule {schedule.value}.", style="dim")


@sub_app.command("pull", help="Pull one subscription now.")
def sub_pull(ctx: typer.Context, url: str = typer.Argument(..., help="Subscribed feed URL.")) -> None:
    state = _get_state(ctx)
    try:
        result = state.orchestrator.pull(url)
    except MeatspaceError as exc:
        _fail(exc)
    console.print(_render_pull_table({url: result}))
    for failure in result.failures:
        console.print(f"post #{failure.index}: {failure.reason}", style="red")


@sub_app.command("pull-all", help="Pull every subscription now.")
def sub_pull_all(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    outcomes = state.orchestrator.pull_all()
    if not outcomes:
        console.print("No subscriptions to pull.", style="yellow")
        return
    console.print(_render_pull_table(outcomes))
    if any(isinstance(outcome, MeatspaceError) for outcome in outcomes.values()):
        raise typer.Exit(code=1)


@sub_app.command("history", help="Show messages recently shared from a subscription.")
def sub_history(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Feed URL."),
    limit: int = typer.Option(20, "--limit", min=1, help="Show at most N shares."),
) -> None:
    state = _get_state(ctx)
    shared = state.orchestrator.share_history(url, limit)
    if not shared:
        console.print("Nothing shared from this feed yet.", style="dim")
        return
    table = Table(title=f"Shared from {url}", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Message", overflow="fold")
    table.add_column("Shared at", style="green")
    for message, shared_at in shared:
        table.add_row(str(message.id), message.content.message, shared_at)
    console.print(table)


@feed_app.command("recent", help="Print the public feed document.")
def feed_recent(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", min=0, help="Skip this many public messages."),
) -> None:
    state = _get_state(ctx)
    _print_json(state.orchestrator.publisher.render_feed(offset))


@feed_app.command("one", help="Print one public message.")
def feed_one(ctx: typer.Context, message_id: int = typer.Argument(..., help="Message id.")) -> None:
    state = _get_state(ctx)
    try:
        payload = state.orchestrator.publisher.render_one(message_id)
    except MeatspaceError as exc:
        _fail(exc)
    _print_json(payload)


@feed_app.command("write", help="Write the public feed to a JSON file.")
def feed_write(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(None, "--output", help="Target path (defaults to config)."),
) -> None:
    state = _get_state(ctx)
    try:
        path = state.orchestrator.write_feed(Path(output) if output else None)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    console.print(f"Feed written to {path}.", style="green")


@owner_app.command("show", help="Show the owner identity.")
def owner_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    owner = state.repository.load_global_config().owner
    table = Table(title="Owner", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("full name", owner.full_name or "-")
    table.add_row("username", owner.username or "-")
    table.add_row("post url", owner.post_url or "-")
    console.print(table)
    missing = owner.missing_fields()
    if missing:
        console.print(f"Incomplete: {', '.join(missing)}. Posting is disabled.", style="yellow")


@owner_app.command("set", help="Update the owner identity.")
def owner_set(
    ctx: typer.Context,
    full_name: Optional[str] = typer.Option(None, "--full-name"),
    username: Optional[str] = typer.Option(None, "--username"),
    post_url: Optional[str] = typer.Option(None, "--post-url"),
) -> None:
    state = _get_state(ctx)
    try:
        if post_url is not None:
            post_url = normalise_url(post_url)
    except MeatspaceError as exc:
        _fail(exc)
    state.repository.update_owner(full_name=full_name, username=username, post_url=post_url)
    console.print("Owner identity saved.", style="green")


@log_app.command("list", help="List per-subscription log files.")
def log_list() -> None:
    logs = list(available_subscription_logs())
    if not logs:
        console.print("No subscription logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    url: Optional[str] = typer.Option(None, "--subscription", help="Subscription URL (default: main log)."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines."),
) -> None:
    path = subscription_log_path(url) if url else log_dir() / MAIN_LOG
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log lines yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines))


@app.command("watch", help="Poll subscriptions on the configured schedule until interrupted.")
def watch(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    state.orchestrator.register_schedules()
    console.print(
        f"Polling subscriptions, next poll at {state.scheduler.next_pull_time()}; press Ctrl+C to stop.",
        style="cyan",
    )
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping.", style="yellow")
    finally:
        state.scheduler.shutdown()
        state.orchestrator.close()


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
