"""Typer CLI entrypoint for the ledger file index."""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from dataclasses import dataclass
from typing import Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, FilterSpec, IndexConfig, PaginationConfig, ReconcileOptions, SortSpec
from .engine.exporter import FORMATS, FileExporter
from .errors import LedgerIndexError
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import ReconcileResult, Reconciler

app = typer.Typer(
    help="Ledger file index command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log viewing commands", no_args_is_help=True)

console = Console()
err_console = Console(stderr=True)

OPERATORS = ("equals", "contains", "startsWith", "endsWith")
DIRECTIONS = ("asc", "desc")


@dataclass
class AppState:
    repository: ConfigRepository
    config: IndexConfig


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    return AppState(repository=repository, config=repository.load_config())


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _build_options(
    filter_field: Optional[str],
    filter_value: Optional[str],
    filter_operator: str,
    sort_field: Optional[str],
    sort_direction: str,
    page_size: Optional[int],
    max_pages: Optional[int],
    debug: bool,
    config: IndexConfig,
) -> ReconcileOptions:
    if filter_operator not in OPERATORS:
        raise typer.BadParameter(f"--filter-operator must be one of {', '.join(OPERATORS)}")
    if sort_direction not in DIRECTIONS:
        raise typer.BadParameter("--sort-direction must be asc or desc")
    if (filter_field is None) != (filter_value is None):
        raise typer.BadParameter("--filter-field and --filter-value must be used together")

    filter_by = None
    if filter_field is not None and filter_value is not None:
        filter_by = FilterSpec(field=filter_field, value=filter_value, operator=filter_operator)
    sort_by = SortSpec(field=sort_field, direction=sort_direction) if sort_field else None
    pagination = None
    if page_size is not None or max_pages is not None:
        try:
            pagination = PaginationConfig(
                page_size=page_size or config.pagination.page_size,
                max_pages=max_pages if max_pages is not None else config.pagination.max_pages,
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    return ReconcileOptions(filter_by=filter_by, sort_by=sort_by, pagination=pagination, debug=debug)


def _render_entries_table(result: ReconcileResult) -> Table:
    table = Table(title="Files", box=box.SIMPLE_HEAVY)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Identifier", overflow="fold")
    table.add_column("Piece CID", overflow="fold")
    table.add_column("Type")
    table.add_column("Owner", overflow="fold")
    table.add_column("Access Granted")
    for index, entry in enumerate(result.entries.values(), start=1):
        table.add_row(
            str(index),
            entry.metadata.name or "Unnamed File",
            entry.identifier,
            entry.metadata.storage_locator or "N/A",
            entry.metadata.type or "Unknown",
            entry.owner,
            "Yes" if entry.access_granted else "No",
        )
    return table


def _render_summary(result: ReconcileResult) -> Table:
    table = Table(title="Summary", box=box.SIMPLE)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total Files", str(len(result.entries)))
    by_type = Counter(entry.metadata.type or "unknown" for entry in result.entries.values())
    if len(by_type) > 1:
        for type_name, count in sorted(by_type.items()):
            table.add_row(f"  {type_name}", str(count))
    table.add_row("Pages (owner / minter)", f"{result.owner_pages} / {result.minter_pages}")
    table.add_row("Tombstone check", result.tombstones.status.value)
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)


@app.command("list", help="List files visible to ADDRESS across the ledger feeds.")
def list_files(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Wallet address to reconcile"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the ledger service URL"),
    filter_field: Optional[str] = typer.Option(None, "--filter-field", help="Field to filter by (name, type, mimeType, ...)"),
    filter_value: Optional[str] = typer.Option(None, "--filter-value", help="Value to filter for"),
    filter_operator: str = typer.Option("equals", "--filter-operator", help="equals, contains, startsWith, endsWith"),
    sort_field: Optional[str] = typer.Option(None, "--sort-field", help="Field to sort by"),
    sort_direction: str = typer.Option("asc", "--sort-direction", help="asc or desc"),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Items per page (1-100)"),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Maximum pages per feed"),
    debug: bool = typer.Option(False, "--debug", help="Log per-feed details", is_flag=True),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table", is_flag=True),
    export: Optional[str] = typer.Option(None, "--export", help=f"Also write results ({', '.join(FORMATS)})"),
) -> None:
    state = _get_state(ctx)
    config = state.config
    if api_url:
        config = config.model_copy(update={"api_url": api_url.rstrip("/")})
    if export is not None and export not in FORMATS:
        raise typer.BadParameter(f"--export must be one of {', '.join(FORMATS)}")
    options = _build_options(
        filter_field,
        filter_value,
        filter_operator,
        sort_field,
        sort_direction,
        page_size,
        max_pages,
        debug,
        config,
    )

    try:
        result = asyncio.run(Reconciler(config).reconcile(address, options))
    except LedgerIndexError as exc:
        console.print(f"Listing failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc

    if export is not None:
        with FileExporter(state.repository.resolved_output_dir(config), address, export) as exporter:
            exporter.export_many(result.entries.values())
        # Keep stdout clean for --json consumers.
        (err_console if as_json else console).print(f"Exported to {exporter.path}", style="green", markup=False)

    if as_json:
        payload = {key: entry.as_row() for key, entry in result.entries.items()}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not result.entries:
        console.print("No files with durable storage found.", style="yellow")
    else:
        console.print(_render_entries_table(result))
    if result.tombstone_check_skipped:
        console.print("Deletion check failed; deleted files may be listed.", style="yellow")
    console.print(_render_summary(result))


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    typer.echo(yaml.safe_dump(state.config.model_dump(mode="json"), sort_keys=False))


@log_app.command("show", help="Show the tail of the index log.")
def log_show(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show"),
    errors_only: bool = typer.Option(False, "--errors", help="Show the error log instead", is_flag=True),
) -> None:
    path = default_log_dir() / ("error.log" if errors_only else "index.log")
    content = tail_log(path, lines)
    if not content:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"== {path} ==", style="cyan")
    console.print("".join(content), markup=False)


__all__ = ["AppState", "app", "build_state"]
