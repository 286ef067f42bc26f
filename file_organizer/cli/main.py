"""Main CLI interface for the File Organizer."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import LoggingConfig, setup_config
from ..core.exceptions import (
    FatalConfigError, NotADirectoryPathError, OrganizerError, PathNotFoundError,
    UndoFatalError
)
from ..core.logging_config import get_logger, setup_logging
from ..core.models import Action, Category, DEFAULT_CATEGORY_TABLE, OrganizeOptions, Result
from ..core.organizer import Organizer
from ..core.undo import UndoEngine, UndoOutcome

# Progress goes to stdout, fatal errors to stderr
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


@click.group()
@click.version_option(version="0.1.0")
@click.option('--config', '-c', type=click.Path(path_type=Path),
              help='Configuration file path')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level (overrides config)')
@click.option('--log-file', type=click.Path(path_type=Path),
              help='Log file path (overrides config)')
@click.pass_context
def cli(ctx, config, log_level, log_file):
    """File Organizer - Sort files into category folders and undo the moves."""
    config_manager = setup_config(config)
    app_config = config_manager.get_config()

    if log_level or log_file:
        logging_config = LoggingConfig(
            level=log_level or app_config.logging.level,
            file_path=log_file or app_config.logging.file_path,
            file_enabled=app_config.logging.file_enabled or bool(log_file),
            console_enabled=app_config.logging.console_enabled,
            format=app_config.logging.format,
            file_max_size_mb=app_config.logging.file_max_size_mb,
            file_backup_count=app_config.logging.file_backup_count
        )
    else:
        logging_config = app_config.logging

    setup_logging(logging_config)

    ctx.ensure_object(dict)
    ctx.obj['config'] = app_config
    ctx.obj['config_manager'] = config_manager


@cli.command()
@click.argument("source", type=click.Path(path_type=Path))
@click.option("--dest", "-d", type=click.Path(path_type=Path),
              help="Destination root directory (default: same as source)")
@click.option("--dry-run", is_flag=True, help="Print actions without making changes")
@click.option("--workers", "-w", type=click.IntRange(min=1),
              help="Number of worker threads (default from config)")
@click.option("--include-hidden", is_flag=True, help="Include hidden files and folders")
@click.pass_context
def organize(ctx, source: Path, dest: Optional[Path], dry_run: bool, workers: int, include_hidden: bool):
    """Sort the files under SOURCE into category folders."""
    app_config = ctx.obj['config']

    if workers is None:
        workers = app_config.organize.default_workers
    if not include_hidden:
        include_hidden = app_config.organize.default_include_hidden

    options = OrganizeOptions(
        source=source,
        destination=dest,
        dry_run=dry_run,
        workers=workers,
        include_hidden=include_hidden,
        queue_size=app_config.organize.queue_size,
    )

    if dry_run:
        console.print("[bold yellow]DRY RUN MODE: no files will be moved[/bold yellow]")

    organizer = Organizer(options, reporter=_print_result)
    try:
        summary = organizer.run()
    except FatalConfigError as e:
        handle_cli_error(e, "organize")
        raise click.Abort()

    if summary.manifest_path:
        console.print(f"Manifest saved: {escape(str(summary.manifest_path))}", soft_wrap=True)
    elif summary.manifest_error:
        console.print(f"[yellow]WARN[/yellow]   failed to write manifest: {escape(summary.manifest_error)}",
                      soft_wrap=True)

    if summary.cancelled:
        console.print("[yellow]Run cancelled, remaining files were left in place[/yellow]")

    console.print(
        f"\nDone in {_format_duration(summary.duration)} | "
        f"moved={summary.moved} skipped={summary.skipped} failed={summary.failed}"
    )


@cli.command()
@click.argument("manifest", type=click.Path(path_type=Path))
@click.option("--dest", "-d", type=click.Path(path_type=Path),
              help="Destination root to tidy after undo (default: derived from the manifest location)")
@click.option("--dry-run", is_flag=True, help="Print actions without making changes")
def undo(manifest: Path, dest: Optional[Path], dry_run: bool):
    """Move files recorded in MANIFEST back to where they came from."""
    if dest is not None and not dest.is_dir():
        handle_cli_error(NotADirectoryPathError(f"Destination path is not a directory: {dest}"), "undo")
        raise click.Abort()

    engine = UndoEngine(dest_root=dest, dry_run=dry_run, reporter=_undo_printer(dry_run))
    try:
        summary = engine.undo(manifest)
    except UndoFatalError as e:
        handle_cli_error(e, "undo")
        raise click.Abort()

    console.print(
        f"\nUndo summary: undone={summary.undone} skipped={summary.skipped} failed={summary.failed}"
    )
    for directory in summary.removed_dirs:
        console.print(f"[dim]Removed empty folder {escape(str(directory))}[/dim]", soft_wrap=True)


@cli.command()
def categories():
    """Show the extension to category table."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category", style="green")
    table.add_column("Extensions", style="cyan", no_wrap=False)

    by_category = {}
    for extension, category in sorted(DEFAULT_CATEGORY_TABLE.extensions.items()):
        by_category.setdefault(category, []).append(extension)

    for category in Category:
        extensions = by_category.get(category)
        if extensions:
            table.add_row(category.value, " ".join(extensions))
    table.add_row(DEFAULT_CATEGORY_TABLE.fallback.value, "[dim]anything else[/dim]")

    console.print(table)


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command('show')
@click.pass_context
def show_config(ctx):
    """Show current configuration."""
    app_config = ctx.obj['config']

    console.print("[bold blue]Current Configuration:[/bold blue]\n")

    console.print("[bold]Organize:[/bold]")
    console.print(f"  Default workers: {app_config.organize.default_workers}")
    console.print(f"  Queue size: {app_config.organize.queue_size}")
    console.print(f"  Default include hidden: {app_config.organize.default_include_hidden}")

    console.print("\n[bold]Logging:[/bold]")
    console.print(f"  Level: {app_config.logging.level}")
    console.print(f"  File enabled: {app_config.logging.file_enabled}")
    console.print(f"  File path: {escape(str(app_config.logging.file_path))}", soft_wrap=True)
    console.print(f"  File max size: {app_config.logging.file_max_size_mb}MB")
    console.print(f"  File backup count: {app_config.logging.file_backup_count}")
    console.print(f"  Console enabled: {app_config.logging.console_enabled}")


@config.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value. Use dot notation for nested keys (e.g., organize.default_workers)."""
    config_manager = ctx.obj['config_manager']
    app_config = ctx.obj['config']

    try:
        keys = key.split('.')
        if len(keys) != 2:
            raise ValueError("Key must be in format 'section.key' (e.g., 'organize.default_workers')")

        section, setting = keys

        if section not in ('organize', 'logging'):
            raise ValueError(f"Unknown configuration section: {section}")

        section_obj = getattr(app_config, section)

        if not hasattr(section_obj, setting):
            raise ValueError(f"Unknown setting '{setting}' in section '{section}'")

        current_value = getattr(section_obj, setting)

        if isinstance(current_value, bool):
            converted_value = value.lower() in ('true', '1', 'yes', 'on')
        elif isinstance(current_value, int):
            converted_value = int(value)
        elif isinstance(current_value, Path):
            converted_value = Path(value)
        else:
            converted_value = value

        setattr(section_obj, setting, converted_value)
        config_manager.save_to_file()

        console.print(f"[green]✓[/green] Set {key} = {escape(str(converted_value))}")

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@config.command('reset')
@click.confirmation_option(prompt='Are you sure you want to reset all configuration to defaults?')
@click.pass_context
def reset_config(ctx):
    """Reset configuration to default values."""
    ctx.obj['config_manager'].reset_to_defaults()
    console.print("[green]✓ Configuration reset to defaults[/green]")


def _print_result(result: Result):
    """Print one tagged progress line for an organize result."""
    src = escape(str(result.source))
    dst = escape(str(result.destination)) if result.destination else ""

    if result.action is Action.ERROR:
        console.print(f"[red]ERROR[/red]  {src} -> {dst}  ({escape(result.message)})", soft_wrap=True)
    elif result.action is Action.SKIP:
        console.print(f"[dim]SKIP[/dim]   {src}", soft_wrap=True)
    elif result.simulated:
        console.print(f"[yellow]DRYRUN[/yellow] {src} -> {dst}", soft_wrap=True)
    else:
        console.print(f"[green]MOVED[/green]  {src} -> {dst}", soft_wrap=True)


def _undo_printer(dry_run: bool):
    """Build the undo reporter printing one tagged line per record."""
    def report(outcome: UndoOutcome, record, target, error):
        src = escape(str(record.destination))
        dst = escape(str(target)) if target else ""

        if outcome is UndoOutcome.SKIPPED:
            console.print(f"[dim]SKIP[/dim]   missing: {src} (already moved/deleted)", soft_wrap=True)
        elif outcome is UndoOutcome.FAILED:
            console.print(f"[red]ERROR[/red]  undo {src} -> {dst} ({escape(str(error))})", soft_wrap=True)
        elif dry_run:
            console.print(f"[yellow]DRYRUN UNDO[/yellow] {src} -> {dst}", soft_wrap=True)
        else:
            console.print(f"[green]UNDONE[/green] {src} -> {dst}", soft_wrap=True)

    return report


def _format_duration(seconds: float) -> str:
    """Format elapsed time in human-readable form."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.3f}s"
    else:
        minutes, seconds = divmod(seconds, 60)
        return f"{int(minutes)}m{seconds:.3f}s"


def handle_cli_error(error: Exception, operation: str = "operation") -> None:
    """
    Handle fatal CLI errors with appropriate user feedback on stderr.

    Args:
        error: The exception that occurred
        operation: Description of the operation that failed
    """
    message = escape(str(error))
    if isinstance(error, PathNotFoundError):
        err_console.print(f"[bold red]Error:[/bold red] {message}", soft_wrap=True)
        err_console.print("[yellow]Please check that the path exists and is accessible.[/yellow]")
    elif isinstance(error, FatalConfigError):
        err_console.print(f"[bold red]Configuration Error:[/bold red] {message}", soft_wrap=True)
    elif isinstance(error, UndoFatalError):
        err_console.print(f"[bold red]Undo Error:[/bold red] {message}", soft_wrap=True)
        err_console.print("[yellow]Please check that the manifest exists and was written by this tool.[/yellow]")
    elif isinstance(error, OrganizerError):
        err_console.print(f"[bold red]Error:[/bold red] {message}", soft_wrap=True)
    else:
        err_console.print(f"[bold red]Unexpected Error:[/bold red] {message}", soft_wrap=True)

    get_logger(__name__).error(f"CLI error in {operation}: {error}")


if __name__ == "__main__":
    cli()
