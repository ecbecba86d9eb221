"""
Rich console utilities for dual-mode CLI output.

Provides readable terminal output for humans and structured JSON for agents.
All output functions adapt to the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json/quiet)
- Context manager: spinner()
- Output functions: success(), error(), warning(), info()
- Display functions: print_share_of_voice_table(), print_banner(),
  print_final_summary()

Human Mode (--format text):
    - Rich spinners, colored tables and panels

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Quiet Mode (--quiet):
    - Tab-separated values, no decorations

Examples:
    >>> from sov_watcher.utils.console import output_mode, spinner, success
    >>> output_mode.format = "text"
    >>> with spinner("Calculating..."):
    ...     result = aggregator.calculate(...)
    >>> success("Share of Voice calculated")
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from sov_watcher.sov.models import ShareOfVoiceResult


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
        _json_buffer: Internal buffer for JSON output in agent mode

    Examples:
        >>> mode = OutputMode()
        >>> mode.is_human()
        True
        >>> mode.format = "json"
        >>> mode.is_agent()
        True
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Initialize output mode.

        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """Add key-value pair to the JSON buffer (flushed by flush_json())."""
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2, default=str)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """
    Show a spinner during an operation in human mode; silent otherwise.

    Args:
        message: Status message to display
    """
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr (also in quiet mode)
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """
    Print a warning message.

    Human mode: Yellow warning symbol with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message (human mode only)."""
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def print_share_of_voice_table(result: ShareOfVoiceResult) -> None:
    """
    Print per-brand percentages and counts.

    Human mode: Rich table, target brand first and highlighted
    Agent mode: Buffer the full result as JSON
    Quiet mode: One "brand<TAB>percentage<TAB>count" line per brand
    """
    if output_mode.is_agent():
        output_mode.add_json("result", result.to_dict())
        return

    if output_mode.quiet:
        for name, share in result.share_of_voice.items():
            print(f"{name}\t{share:.2f}\t{result.mention_counts.get(name, 0)}")
        return

    table = Table(title="Share of Voice", box=box.ROUNDED)
    table.add_column("Brand", style="cyan", no_wrap=True)
    table.add_column("Share", justify="right", style="green")
    table.add_column("Mentions", justify="right")

    for index, (name, share) in enumerate(result.share_of_voice.items()):
        label = f"[bold]{name}[/bold]" if index == 0 else name
        table.add_row(label, f"{share:.2f}%", str(result.mention_counts.get(name, 0)))

    console.print(table)

    if result.is_measured and result.breakdowns.by_context_type:
        contexts = ", ".join(
            f"{context}: {count}"
            for context, count in sorted(result.breakdowns.by_context_type.items())
        )
        console.print(f"[dim]Context types - {contexts}[/dim]")


def print_banner(version: str) -> None:
    """Print a startup banner in human mode."""
    if not output_mode.is_human() or output_mode.quiet:
        return

    banner = f"""
[bold cyan]╔{"═" * 39}╗
║   SOV Watcher v{version:<22} ║
║   Share of Voice in AI answers        ║
╚{"═" * 39}╝[/bold cyan]
"""

    console.print(banner)


def print_final_summary(result: ShareOfVoiceResult, output_path: str | None) -> None:
    """
    Print final summary of a calculation.

    Human mode: Panel with green border when measured, yellow for fallbacks
    Agent mode: Flush all buffered JSON including these final fields
    Quiet mode: Tab-separated session id, status, brand share
    """
    if output_mode.is_agent():
        output_mode.add_json("analysis_session_id", result.analysis_session_id)
        output_mode.add_json("output_path", output_path)
        output_mode.flush_json()
        return

    if output_mode.quiet:
        print(f"{result.analysis_session_id}\t{result.status.value}\t{result.brand_share:.2f}")
        return

    summary_text = f"""
[bold]Session:[/bold] {result.analysis_session_id}
[bold]Method:[/bold] {result.calculation_method}
[bold]Brand share:[/bold] {result.brand_share:.2f}%
[bold]Mentions:[/bold] {result.total_mentions}
"""
    if output_path:
        summary_text += f"[bold]Output:[/bold] {output_path}\n"

    if result.is_measured:
        border_style = "green"
        title = "[bold green]✓ Share of Voice measured[/bold green]"
    else:
        border_style = "yellow"
        title = (
            "[bold yellow]⚠ Fallback distribution "
            f"({result.status.value})[/bold yellow]"
        )

    console.print(
        Panel(summary_text.strip(), title=title, border_style=border_style, box=box.ROUNDED)
    )
