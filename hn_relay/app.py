"""Typer CLI entrypoint for HN Relay."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, RelayConfig
from .engine import StoryRecord
from .infra import SQLiteManager
from .logging_conf import configure_logging, error_log_path, relay_log_path, tail_log
from .scheduler import APSchedulerAdapter
from .service import RelayService

app = typer.Typer(
    help="Mirror the Hacker News front page into a Telegram channel.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: RelayConfig
    service: RelayService
    scheduler: APSchedulerAdapter
    storage: SQLiteManager


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    config = repository.load()
    scheduler = APSchedulerAdapter()
    storage = SQLiteManager()
    service = RelayService.from_config(
        config,
        repository.store_path(config),
        storage=storage,
        scheduler=scheduler,
    )
    return AppState(
        repository=repository,
        config=config,
        service=service,
        scheduler=scheduler,
        storage=storage,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_counts(title: str, counts: Mapping[str, int]) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Count", style="green", justify="right")
    for key, value in counts.items():
        table.add_row(key, str(value))
    return table


def _format_age(record: StoryRecord, now: datetime) -> str:
    if record.last_save is None:
        return "-"
    minutes = int(record.age(now).total_seconds() // 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m"


def _render_records_table(records: Sequence[StoryRecord], now: datetime) -> Table:
    table = Table(title=f"Posted stories · {len(records)}", box=box.SIMPLE_HEAD)
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Message", style="magenta")
    table.add_column("Last save", style="green")
    table.add_column("Age", style="yellow", justify="right")
    for record in records:
        table.add_row(
            str(record.item_id),
            str(record.message_id),
            record.last_save.isoformat() if record.last_save else "-",
            _format_age(record, now),
        )
    return table


def _wait_for_tasks(state: AppState, timeout: float) -> None:
    if not state.service.queue.drain(timeout=timeout):
        console.print(
            f"Tasks still running after {timeout:.0f}s; they stay queued for the next run.",
            style="yellow",
        )
    stats = dict(state.service.queue.stats)
    if stats:
        console.print(_render_counts("Dispatch outcomes", stats))


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)


@app.command("poll", help="Run one reconciliation cycle against the current top stories.")
def poll(
    ctx: typer.Context,
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for dispatched tasks to finish."),
    timeout: float = typer.Option(600.0, "--timeout", help="Seconds to wait for dispatched tasks."),
) -> None:
    state = _get_state(ctx)
    try:
        report = state.service.poll()
        console.print(_render_counts("Poll cycle", report.as_dict()))
        if wait:
            _wait_for_tasks(state, timeout)
    finally:
        state.service.close()


@app.command("cleanup", help="Delete channel messages older than the retention window.")
def cleanup(
    ctx: typer.Context,
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for dispatched tasks to finish."),
    timeout: float = typer.Option(600.0, "--timeout", help="Seconds to wait for dispatched tasks."),
) -> None:
    state = _get_state(ctx)
    try:
        report = state.service.cleanup()
        console.print(_render_counts("Retention sweep", report.as_dict()))
        if wait:
            _wait_for_tasks(state, timeout)
    finally:
        state.service.close()


@app.command("serve", help="Run poll and cleanup on their schedules until interrupted.")
def serve(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    recovered = state.service.queue.recover()
    if recovered:
        console.print(f"Recovered {recovered} unfinished task(s).", style="dim")
    state.service.register_schedules()
    console.print("Relay running, press Ctrl+C to stop.", style="green")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping…", style="yellow")
    finally:
        state.service.close()


@app.command("records", help="List stored story records.")
def records(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    rows = state.service.records()
    if not rows:
        console.print("No stories are currently posted.", style="yellow")
        return
    console.print(_render_records_table(rows, datetime.now(timezone.utc)))


@app.command("config", help="Show the effective configuration.")
def show_config(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    payload = state.config.model_dump(mode="json")
    if payload["channel"]["bot_token"]:
        payload["channel"]["bot_token"] = "***"
    console.print(f"# {state.repository.locator.config_path()}", style="dim")
    console.print(yaml.safe_dump(payload, allow_unicode=True, sort_keys=False))


@app.command("logs", help="Show the tail of the relay log.")
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log instead.", is_flag=True),
) -> None:
    path = error_log_path() if errors else relay_log_path()
    content: Iterable[str] = tail_log(path, lines)
    if not content:
        console.print(f"Log is empty: {path}", style="yellow")
        return
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
