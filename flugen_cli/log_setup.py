"""Logging setup for the flugen CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.rule import Rule
from rich.text import Text

console = Console()
err_console = Console(stderr=True)


def setup_logging(is_verbose: bool = False) -> None:
    """Route log records through a rich handler on stderr.

    Args:
        is_verbose: Log DEBUG and above instead of WARNING and above.
    """
    log_level = logging.DEBUG if is_verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Avoid duplicate records when the CLI is invoked more than once per process.
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(
        RichHandler(
            console=err_console,
            level=log_level,
            rich_tracebacks=True,
            show_time=is_verbose,
            show_path=is_verbose,
        )
    )


def display_error_summary(error_message: str) -> None:
    title = Text("Error Summary", style="bold red")

    console.print()
    console.print(Rule(title, style="red"))
    console.print(f"\n{error_message}\n")
    console.print(Rule(style="red"))
