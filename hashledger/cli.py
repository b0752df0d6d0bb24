"""CLI entry point for hashledger."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from hashledger.config import DEFAULT_CONFIG_TEMPLATE, LedgerConfig, load_config
from hashledger.errors import HashledgerError
from hashledger.ingest import IngestMode
from hashledger.ledger import Ledger, UpdateReport, VerifyReport
from hashledger.logging_setup import configure_logging
from hashledger.reconcile import Classification
from hashledger.scanner import ProgressCallback

app = typer.Typer(
    name="hashledger",
    help="Content-addressable checksum database: detect modified, moved, renamed, new and deleted files.",
)

config_app = typer.Typer(help="Manage hashledger configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: LedgerConfig | None = None


def _get_config() -> LedgerConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to hashledger.yaml")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Debug logging")
    ] = False,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging("debug" if verbose else _config.log_level, _config.log_format)


def _short(fingerprint: str) -> str:
    return fingerprint[:8] + "..."


@contextmanager
def _progress(label: str, quiet: bool) -> Iterator[ProgressCallback | None]:
    """Rich progress bar fed by the scanner's per-file callback."""
    if quiet:
        yield None
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[green]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        transient=True,
    ) as progress:
        task = progress.add_task(label, total=None)

        def _advance(rel_path: str, total: int) -> None:
            progress.update(task, total=total, advance=1)

        yield _advance


# ── add / regenerate ─────────────────────────────────────────────────


def _display_update(report: UpdateReport) -> None:
    regenerate = report.mode is IngestMode.REGENERATE
    title = "Checksum regeneration complete" if regenerate else "New files added to database"
    stats = report.stats

    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Count", justify="right")
    table.add_row("Total files scanned", str(report.scanned))
    table.add_row("Successfully processed", str(stats.processed))
    table.add_row("New paths added", str(stats.added))
    table.add_row("Paths rebound to new content", str(stats.updated))
    table.add_row("Unchanged paths refreshed", str(stats.refreshed))
    if not regenerate:
        table.add_row("Changed paths left untouched", str(stats.skipped))
    table.add_row("Missing paths pruned", str(stats.pruned))
    if stats.errors:
        table.add_row("[red]Errors encountered[/red]", f"[red]{stats.errors}[/red]")
    rprint(table)

    if report.load_status == "corrupt":
        rprint("[yellow]Warning:[/yellow] the previous database could not be read and was rebuilt.")
    rprint(f"[green]✓ Database saved to:[/green] {escape(str(report.database_path))}")


def _run_update(path: str, mode: IngestMode, quiet: bool) -> None:
    root = Path(path)
    if not root.is_dir():
        rprint(f"[red]Error:[/red] not a directory: {escape(path)}")
        raise typer.Exit(1)

    ledger = Ledger(root, _get_config())
    label = "Regenerating" if mode is IngestMode.REGENERATE else "Adding"
    with _progress(label, quiet) as on_progress:
        report = ledger.update(mode, on_progress=on_progress)
    _display_update(report)


@app.command()
def add(
    path: Annotated[str, typer.Argument(help="Directory to track")] = ".",
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="No progress bar")] = False,
) -> None:
    """Add files not yet in the database; never overwrite known checksums."""
    _run_update(path, IngestMode.APPEND_ONLY, quiet)


@app.command()
def regenerate(
    path: Annotated[str, typer.Argument(help="Directory to track")] = ".",
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="No progress bar")] = False,
) -> None:
    """Rescan every file and overwrite checksums of modified ones."""
    _run_update(path, IngestMode.REGENERATE, quiet)


# ── verify ───────────────────────────────────────────────────────────


def _print_ci(classification: Classification) -> None:
    for r in classification.ok:
        typer.echo(f"OK {r.path}")
    for r in classification.modified:
        typer.echo(f"MODIFIED {r.path}")
    for r in classification.renamed:
        typer.echo(f"RENAMED {', '.join(r.old_paths)} -> {', '.join(r.new_paths)}")
    for r in classification.moved:
        typer.echo(f"MOVED {r.path}")
    for r in classification.new:
        typer.echo(f"NEW {r.path}")
    for r in classification.deleted:
        typer.echo(f"DELETED {r.path}")


def _print_rich(report: VerifyReport, classification: Classification, show_ok: bool) -> None:
    summary = (
        f"[dim]Files on disk checked:[/dim]    {report.files_checked}\n"
        f"[dim]Unique checksums in DB:[/dim]   {report.unique_fingerprints}\n"
        f"[dim]Database:[/dim]                 {escape(str(report.database_path))}"
    )
    rprint(Panel(summary, title="Verification Results", border_style="blue"))

    if show_ok and classification.ok:
        rprint(f"\n[green]✓ OK ({len(classification.ok)}):[/green]")
        for r in classification.ok:
            rprint(f"  • {escape(r.path)}")

    if classification.modified:
        rprint(f"\n[yellow]⚠ MODIFIED ({len(classification.modified)}):[/yellow]")
        for r in classification.modified:
            rprint(f"  • {escape(r.path)}")
            rprint(f"    Original: {_short(r.original_fingerprint)}")
            rprint(f"    Current:  {_short(r.current_fingerprint)}")

    if classification.renamed:
        rprint(f"\n[blue]↔ RENAMED ({len(classification.renamed)}):[/blue]")
        for r in classification.renamed:
            rprint(f"  • Hash: {_short(r.fingerprint)}")
            rprint(f"    Old path(s): {escape(', '.join(r.old_paths))}")
            rprint(f"    New path(s): {escape(', '.join(r.new_paths))}")

    if classification.moved:
        rprint(f"\n[blue]↔ MOVED ({len(classification.moved)}):[/blue]")
        for r in classification.moved:
            rprint(f"  • {escape(r.path)}")
            rprint(f"    Hash: {_short(r.fingerprint)}")
            rprint(f"    Previously at: {escape(', '.join(r.known_old_paths))}")

    if classification.new:
        rprint(f"\n[magenta]+ NEW ({len(classification.new)}):[/magenta]")
        for r in classification.new:
            rprint(f"  • {escape(r.path)} (Hash: {_short(r.fingerprint)})")

    if classification.deleted:
        rprint(f"\n[red]✗ DELETED ({len(classification.deleted)}):[/red]")
        for r in classification.deleted:
            rprint(f"  • {escape(r.path)} (Hash: {_short(r.original_fingerprint)})")

    if report.scan_errors:
        rprint(f"\n[red]{len(report.scan_errors)} file(s) could not be read:[/red]")
        for err in report.scan_errors:
            rprint(f"  • {escape(err.path)}: {escape(err.message)}")

    if classification.is_clean:
        rprint(
            f"\n[green]✓ All {len(classification.ok)} files are verified and match the checksum database.[/green]"
        )
    else:
        rprint(
            f"\n[yellow]⚠ Found {classification.discrepancy_count} discrepancies. Review the details above.[/yellow]"
        )


@app.command()
def verify(
    path: Annotated[str, typer.Argument(help="Directory to verify")] = ".",
    ci: Annotated[bool, typer.Option("--ci", help="Plain 'CATEGORY path' lines")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="JSON output")] = False,
    show_ok: Annotated[bool, typer.Option("--show-ok", help="List unchanged files too")] = False,
    fail_on_change: Annotated[
        bool, typer.Option("--fail-on-change", help="Exit 1 if any discrepancy is found")
    ] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="No progress bar")] = False,
) -> None:
    """Compare files on disk against the stored checksums."""
    root = Path(path)
    if not root.is_dir():
        rprint(f"[red]Error:[/red] not a directory: {escape(path)}")
        raise typer.Exit(1)

    ledger = Ledger(root, _get_config())
    try:
        with _progress("Verifying", quiet or ci or as_json) as on_progress:
            report = ledger.verify(on_progress=on_progress)
    except HashledgerError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    classification = report.classification.sorted()
    if as_json:
        data = {
            "database": str(report.database_path),
            "files_checked": report.files_checked,
            "unique_fingerprints": report.unique_fingerprints,
            "counts": classification.counts(),
            "results": classification.to_dict(),
            "errors": [{"path": e.path, "message": e.message} for e in report.scan_errors],
        }
        typer.echo(json.dumps(data, indent=2))
    elif ci:
        _print_ci(classification)
        typer.echo(f"discrepancies={classification.discrepancy_count}")
    else:
        _print_rich(report, classification, show_ok)

    if fail_on_change and not classification.is_clean:
        raise typer.Exit(code=1)


# ── manual ───────────────────────────────────────────────────────────

MANUAL = """\
[bold]OVERVIEW[/bold]
hashledger keeps a content-addressable checksum database for a directory
tree and reports how the tree changed since the database was last updated.

[bold]HOW IT WORKS[/bold]
• Files are scanned recursively from the given directory
• A digest (MD5 by default) is computed for each file's content
• Checksums are stored in a compressed database (checksums.json.gz)
• Several paths can share one content hash, each with first/last-seen times

[bold]COMMANDS[/bold]
[cyan]add[/cyan]         Add files not yet in the database. Known paths are never
            rebound, so modified files still show as MODIFIED on verify.
[cyan]regenerate[/cyan]  Rescan every file and overwrite checksums of modified ones.
            Use this for a fresh baseline after intentional changes.
[cyan]verify[/cyan]      Compare current files against the stored checksums.

[bold]RESULT CATEGORIES[/bold]
OK        content and path both match the database
MODIFIED  known path, different content
MOVED     known content at a new path, with no old path gone missing
RENAMED   known content whose old path(s) vanished and new path(s) appeared
NEW       content never seen before at a path never seen before
DELETED   known path that no longer exists

[bold]TYPICAL WORKFLOW[/bold]
1. First time: hashledger regenerate
2. New files: hashledger add
3. Check integrity: hashledger verify
4. After intentional changes: hashledger regenerate
"""


@app.command()
def manual() -> None:
    """Show usage instructions."""
    rprint(Panel(MANUAL, title="hashledger manual", border_style="blue"))


# ── config ───────────────────────────────────────────────────────────


@config_app.command("init")
def config_init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    """Write a default hashledger.yaml in the current directory."""
    dest = Path("hashledger.yaml")
    if dest.exists() and not force:
        rprint(f"[yellow]{dest} already exists (use --force to overwrite).[/yellow]")
        raise typer.Exit(1)
    dest.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {dest}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    cfg = _get_config()
    typer.echo(yaml.safe_dump(cfg.model_dump(), sort_keys=False))


if __name__ == "__main__":
    app()
