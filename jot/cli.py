from __future__ import annotations
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .app import create_app
from .client import SyncClient
from .config import configure_logging, get_settings
from .dates import date_range, parse_date_target, single_day
from .db import Store, open_store
from .errors import JotError
from .models import Note, SearchQuery
from .services import (
    create_note, resolve_note, search_notes, soft_delete_note, update_note,
)

app = typer.Typer(help="jot: offline-first notes with sync")
console = Console()


@app.callback()
def _boot(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(None, "--db", envvar="JOT_DB_PATH", help="local note store"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    settings = get_settings()
    configure_logging("INFO" if verbose else settings.log_level)
    ctx.obj = db or settings.db_path


@contextmanager
def _store(ctx: typer.Context) -> Iterator[Store]:
    try:
        with open_store(ctx.obj) as store:
            yield store
    except JotError as e:
        console.print(f"[red]Error[/]: {e}")
        raise typer.Exit(1)


def _parse_target(value: Optional[str]):
    try:
        return parse_date_target(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _note_date(value: Optional[str]) -> str:
    try:
        return single_day(_parse_target(value))
    except ValueError as e:
        raise typer.BadParameter(str(e))


def _split_tags(values: Optional[List[str]]) -> list[str]:
    # "--tag a,b" is the same as "--tag a --tag b"
    return [t.strip() for v in values or [] for t in v.split(",") if t.strip()]


def _print_notes(notes: list[Note], as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps([n.to_record().model_dump() for n in notes]))
        return
    table = Table(title="jot")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Date")
    table.add_column("Tags", style="magenta")
    table.add_column("Content", style="bold")
    table.add_column("Deleted")
    for n in notes:
        preview = n.content.splitlines()[0] if n.content else ""
        table.add_row(
            n.id, n.subject_date or "", ", ".join(n.tags), preview,
            "✓" if n.is_deleted else "",
        )
    console.print(table)


@app.command()
def add(
    ctx: typer.Context,
    content: List[str] = typer.Argument(..., help="note text"),
    tag: List[str] = typer.Option([], "--tag", "-t"),
    date: str = typer.Option("today", "--date", "-d", help="today|yesterday|YYYY-MM-DD"),
):
    subject_date = _note_date(date)
    with _store(ctx) as store:
        n = create_note(store, " ".join(content), _split_tags(tag), subject_date)
    console.print(f"[green]Note added[/] ({n.id})")


app.command("down", help="Alias for add.")(add)


@app.command()
def search(
    ctx: typer.Context,
    term: Optional[str] = typer.Argument(None),
    tag: List[str] = typer.Option([], "--tag", "-t"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="all|past|future|today|last week|...|YYYY-MM-DD"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n"),
    deleted: bool = typer.Option(False, "--deleted", help="include deleted notes"),
    as_json: bool = typer.Option(False, "--json"),
):
    date_from, date_to = date_range(_parse_target(date))
    query = SearchQuery(
        text=term, tags=_split_tags(tag), date_from=date_from, date_to=date_to,
        include_deleted=deleted, limit=limit,
    )
    with _store(ctx) as store:
        notes = search_notes(store, query)
    _print_notes(notes, as_json)


@app.command()
def last(
    ctx: typer.Context,
    term: Optional[str] = typer.Argument(None),
    tag: List[str] = typer.Option([], "--tag", "-t"),
    as_json: bool = typer.Option(False, "--json"),
):
    with _store(ctx) as store:
        notes = search_notes(store, SearchQuery(text=term, tags=_split_tags(tag), limit=1))
    _print_notes(notes, as_json)


@app.command()
def show(ctx: typer.Context, identifier: str):
    with _store(ctx) as store:
        n = resolve_note(store, identifier)
    console.rule(n.id)
    if n.subject_date:
        console.print(f"[dim]date:[/] {n.subject_date}")
    if n.tags:
        console.print(f"[dim]tags:[/] {', '.join(n.tags)}")
    if n.is_deleted:
        console.print("[yellow]deleted[/]")
    console.print(n.content or "<empty>")


@app.command()
def edit(
    ctx: typer.Context,
    identifier: str,
    content: Optional[str] = typer.Option(None, "--content", "-c"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t"),
    date: Optional[str] = typer.Option(None, "--date", "-d"),
    clear_tags: bool = typer.Option(False, "--clear-tags", help="remove all tags"),
):
    subject_date = None if date is None else _note_date(date)
    with _store(ctx) as store:
        n = resolve_note(store, identifier)
        update_note(
            store,
            n.id,
            n.content if content is None else content,
            [] if clear_tags else (_split_tags(tag) or n.tags),
            n.subject_date if subject_date is None else subject_date,
        )
    console.print(f"[green]Updated[/] {n.id}")


@app.command()
def delete(ctx: typer.Context, identifiers: List[str] = typer.Argument(...)):
    with _store(ctx) as store:
        notes = [resolve_note(store, i) for i in identifiers]
        with store.transaction("delete notes"):
            for n in notes:
                soft_delete_note(store, n.id)
    console.print(f"[yellow]Deleted[/] {len(notes)} note(s)")


@app.command()
def sync(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(None, "--server", envvar="JOT_SERVER_URL"),
    user: Optional[str] = typer.Option(None, "--user", envvar="JOT_USER"),
):
    settings = get_settings()
    client = SyncClient(server or settings.server_url, user or settings.user)
    try:
        with _store(ctx) as store:
            result = client.sync(store)
    finally:
        client.close()
    console.print(
        f"[green]Synced[/]: sent {result.sent}, received {result.received}"
    )


@app.command()
def export(ctx: typer.Context, to: Path = typer.Option(..., "--to")):
    with _store(ctx) as store:
        notes = search_notes(store, SearchQuery(include_deleted=True))
    payload = [n.to_record().model_dump() for n in notes]
    to.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    console.print(f"[green]Exported[/] {len(payload)} notes → {to}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", envvar="JOT_DATA_DIR"),
):
    """Run the sync server."""
    uvicorn.run(create_app(data_dir), host=host, port=port)


def main():
    app()


if __name__ == "__main__":
    main()
