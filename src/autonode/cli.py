"""Command line interface for auto-node."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from autonode.config import AppConfig
from autonode.errors import AutoNodeError
from autonode.models import MatchRule
from autonode.notify import ConsoleNotifier
from autonode.session import AutoNodeSession
from autonode.utils.text import is_yes
from autonode.watcher import start_watcher


console = Console()
app = typer.Typer(help="auto-node - keyword driven link lists for markdown vaults")

VaultOption = typer.Option(Path("."), "--vault", help="Vault root directory", resolve_path=True)
DbOption = typer.Option(None, "--db", help="Settings database path (relative to the vault)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _open_session(
    vault: Path, db: Optional[Path], *, debounce_delay: Optional[float] = None
) -> AutoNodeSession:
    if not vault.is_dir():
        raise typer.BadParameter(f"Vault not found: {vault}")
    config = AppConfig(vault_path=vault, db_path=db)
    if debounce_delay is not None:
        config.debounce_delay = debounce_delay
    return AutoNodeSession.from_config(config, notifier=ConsoleNotifier(console))


def _fail(exc: AutoNodeError) -> typer.Exit:
    console.print(f"[red]{exc}[/red]")
    return typer.Exit(code=1)


@app.command()
def create(
    name: str = typer.Argument(..., help="Auto-node note name (path optional)"),
    keyword: str = typer.Option(..., "--keyword", "-k", prompt="Keyword to match in notes"),
    case_sensitive: str = typer.Option(
        "no", "--case-sensitive", help="Match keyword case-sensitively? (yes/no)"
    ),
    whole_word: str = typer.Option("no", "--whole-word", help="Match whole words only? (yes/no)"),
    vault: Path = VaultOption,
    db: Path = DbOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create an auto-node note and fill it with matching links."""
    _setup_logging(verbose)
    session = _open_session(vault, db)
    rule = MatchRule(keyword, case_sensitive=is_yes(case_sensitive), match_whole_word=is_yes(whole_word))
    try:
        session.create_auto_node(name, rule)
    except AutoNodeError as exc:
        raise _fail(exc) from exc
    finally:
        session.teardown()


@app.command()
def sync(
    vault: Path = VaultOption,
    db: Path = DbOption,
    verbose: bool = VerboseOption,
) -> None:
    """Refresh every auto-node once."""
    _setup_logging(verbose)
    session = _open_session(vault, db)
    try:
        stats = session.sync_all()
    finally:
        session.teardown()
    console.print(
        f"Updated: {stats.updated}, unchanged: {stats.unchanged}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}, pruned: {stats.pruned}"
    )


@app.command("list")
def list_nodes(
    vault: Path = VaultOption,
    db: Path = DbOption,
) -> None:
    """Show registered auto-nodes."""
    session = _open_session(vault, db)
    try:
        for ref in session.vault.list_documents():
            session.registry.reload(ref)
        records = session.registry.list()
    finally:
        session.teardown()

    if not records:
        console.print("[yellow]No auto-nodes found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Note")
    table.add_column("Keyword")
    table.add_column("Case sensitive")
    table.add_column("Whole word")
    for record in records:
        table.add_row(
            record.path,
            record.rule.keyword,
            "yes" if record.rule.case_sensitive else "no",
            "yes" if record.rule.match_whole_word else "no",
        )
    console.print(table)


@app.command("set-rule")
def set_rule(
    path: str = typer.Argument(..., help="Vault-relative path of the note"),
    keyword: str = typer.Option(..., "--keyword", "-k"),
    case_sensitive: str = typer.Option("no", "--case-sensitive", help="yes/no"),
    whole_word: str = typer.Option("no", "--whole-word", help="yes/no"),
    vault: Path = VaultOption,
    db: Path = DbOption,
    verbose: bool = VerboseOption,
) -> None:
    """Turn a note into an auto-node or change its rule."""
    _setup_logging(verbose)
    session = _open_session(vault, db)
    rule = MatchRule(keyword.strip(), is_yes(case_sensitive), is_yes(whole_word))
    try:
        record = session.update_rule(path, rule)
    except AutoNodeError as exc:
        raise _fail(exc) from exc
    finally:
        session.teardown()
    console.print(f"Auto-node [bold]{record.path}[/bold] now tracks '{record.rule.keyword}'.")


@app.command()
def remove(
    path: str = typer.Argument(..., help="Vault-relative path of the note"),
    vault: Path = VaultOption,
    db: Path = DbOption,
) -> None:
    """Stop managing a note; its generated links stay in place."""
    session = _open_session(vault, db)
    try:
        session.unregister(path)
    except AutoNodeError as exc:
        raise _fail(exc) from exc
    finally:
        session.teardown()
    console.print(f"Removed auto-node {path}.")


@app.command()
def watch(
    vault: Path = VaultOption,
    db: Path = DbOption,
    delay: float = typer.Option(AppConfig().debounce_delay, help="Debounce delay in seconds"),
    verbose: bool = VerboseOption,
) -> None:
    """Keep auto-nodes up to date while the vault changes."""
    _setup_logging(verbose)
    session = _open_session(vault, db, debounce_delay=delay)
    observer = start_watcher(session.vault.root, session.handle_event)
    session.start()
    console.print(f"Watching [bold]{session.vault.root}[/bold] (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping watcher...")
    finally:
        observer.stop()
        observer.join()
        session.teardown()
