"""Typer-based CLI for flugen."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DEFAULT_PATTERN
from .config_manager import build_options, load_generation_config
from .diff_engine import DiffEngine
from .errors import ConfigError, FlugenError
from .file_system import LocalFileSystem
from .log_setup import console, display_error_summary, setup_logging
from .models import GenerationOptions, RunSummary
from .parser import parse_source
from .resolver import TypeResolver, describe_type
from .scheduler import run

app = typer.Typer(
    help="⚡ flugen — constructors, JSON, copyWith, == and hashCode for // @flu Dart classes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"flugen v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """flugen: companion-file generator for annotated Dart classes."""
    setup_logging(is_verbose=verbose)


# ------------------------------------------------------------------
# Shared option handling
# ------------------------------------------------------------------

def _load_options(
    paths: Optional[List[str]],
    workers: Optional[int],
    const: Optional[bool],
    strict: Optional[bool],
    suffix: Optional[str],
    output_dir: Optional[str],
    config_file: Optional[Path],
    dry_run: bool = False,
) -> GenerationOptions:
    try:
        file_config = load_generation_config(config_file)
        return build_options(
            file_config,
            paths=paths or None,
            workers=workers,
            const_constructors=const,
            strict_types=strict,
            output_suffix=suffix,
            output_dir=output_dir,
            dry_run=dry_run,
        )
    except ConfigError as exc:
        console.print(f"[red]✗[/red] Configuration error: {escape(str(exc))}")
        raise typer.Exit(2)


def _print_summary(summary: RunSummary) -> None:
    for pattern in summary.unmatched_patterns:
        console.print(f"[yellow]⚠[/yellow] No files matched [cyan]{escape(pattern)}[/cyan]")

    table = Table(title="flugen summary", show_header=True)
    table.add_column("Status")
    table.add_column("Files", justify="right")
    for status in ("written", "unchanged", "stale", "skipped", "failed"):
        count = summary.count(status)
        if count:
            table.add_row(status, str(count))
    table.add_row("total", str(len(summary.results)))
    console.print(table)

    failures = summary.failures
    if failures:
        lines = []
        for result in failures:
            location = result.path if result.error_line is None else f"{result.path}:{result.error_line}"
            lines.append(f"✗ {location} [{result.error_kind}] {result.error_message}")
        display_error_summary(escape(f"{len(failures)} file(s) failed:\n" + "\n".join(lines)))


def _paths_option():
    return typer.Option(None, "--path", "-p", help=f"Glob for Dart sources, repeatable. Default: {DEFAULT_PATTERN}")


def _workers_option():
    return typer.Option(None, "--workers", "-j", help="Worker threads (default: CPU count).")


def _const_option():
    return typer.Option(None, "--const/--no-const", help="Allow const constructors.")


def _strict_option():
    return typer.Option(None, "--strict/--no-strict", help="Reject unknown field types instead of assuming nested classes.")


def _suffix_option():
    return typer.Option(None, "--suffix", help="Companion file suffix (default: .flu.dart).")


def _output_dir_option():
    return typer.Option(None, "--output-dir", "-o", help="Write companions under this directory.")


def _config_option():
    return typer.Option(None, "--config", "-c", help="Path to flugen.toml.")


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------

@app.command("generate")
def generate(
    paths: Optional[List[str]] = _paths_option(),
    workers: Optional[int] = _workers_option(),
    const: Optional[bool] = _const_option(),
    strict: Optional[bool] = _strict_option(),
    suffix: Optional[str] = _suffix_option(),
    output_dir: Optional[str] = _output_dir_option(),
    config_file: Optional[Path] = _config_option(),
):
    """⚙️  Generate companion files for every @flu class.

    Example:
      flugen generate
      flugen generate -p "lib/models/**/*.dart" -j 4
    """
    options = _load_options(paths, workers, const, strict, suffix, output_dir, config_file)
    summary = run(options, LocalFileSystem())
    _print_summary(summary)
    if summary.exit_code:
        raise typer.Exit(summary.exit_code)


@app.command("check")
def check(
    paths: Optional[List[str]] = _paths_option(),
    workers: Optional[int] = _workers_option(),
    const: Optional[bool] = _const_option(),
    strict: Optional[bool] = _strict_option(),
    suffix: Optional[str] = _suffix_option(),
    output_dir: Optional[str] = _output_dir_option(),
    config_file: Optional[Path] = _config_option(),
    show_diff: bool = typer.Option(False, "--diff", help="Print unified diffs for stale files."),
):
    """🔍 Verify companion files are up to date without writing anything.

    Exits with 1 when a companion is missing or outdated, or a file fails.
    """
    options = _load_options(paths, workers, const, strict, suffix, output_dir, config_file, dry_run=True)
    summary = run(options, LocalFileSystem())
    if show_diff:
        diff = DiffEngine().preview_results(summary.results)
        if diff:
            typer.echo(diff)
    _print_summary(summary)
    if summary.exit_code or summary.count("stale"):
        raise typer.Exit(1)
    console.print("[green]✓[/green] All companion files are up to date.")


@app.command("inspect")
def inspect(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Dart source file."),
    strict: bool = typer.Option(False, "--strict", help="Reject unknown field types."),
):
    """🧩 Show the @flu classes of a file and how each field is generated."""
    options = GenerationOptions(strict_types=strict)
    try:
        parsed = parse_source(file.read_text(encoding="utf-8"), str(file))
        resolver = TypeResolver.for_file(parsed, options)
        classes = [resolver.resolve_class(cls) for cls in parsed.classes]
    except FlugenError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    if not classes:
        console.print(f"No @flu classes in {file}.")
        return

    for cls in classes:
        const = " (const)" if cls.definition.supports_const_constructor else ""
        table = Table(title=f"{cls.name}{const}", show_header=True)
        table.add_column("Field")
        table.add_column("Type")
        table.add_column("JSON key")
        table.add_column("Strategy")
        table.add_column("Options")
        for field in cls.fields:
            opts = field.definition.options
            flags = [name for name, on in (("ignore", opts.ignore), ("required", opts.required), ("enum", opts.is_enum)) if on]
            if opts.default is not None:
                flags.append(f"default={opts.default}")
            table.add_row(
                field.name,
                field.definition.type_signature,
                field.definition.json_key,
                describe_type(field.resolved),
                " ".join(flags),
            )
        console.print(table)
    if parsed.enums:
        console.print("Enums: " + ", ".join(e.name for e in parsed.enums))
