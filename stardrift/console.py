"""Console output for Stardrift.

Usage:
    from stardrift.console import console

    with console.spinner("Seeding stars..."):
        field = ParticleField(cfg)

    console.success("Done", detail="20000 stars")
    console.warn("Dashboard disabled")
    console.error("Instrument failed", detail=str(err))
    console.info("Device: cpu")
    console.summary("BACKDROP SUMMARY", Frames="600", Stars="20,000")
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class Console:
    """Minimal logging interface with rich output."""

    __slots__ = ('_console',)

    def __init__(self, console: Optional[RichConsole] = None) -> None:
        self._console = console if console is not None else RichConsole()

    def _line(self, icon: str, style: str, message: str, detail: Optional[str]) -> None:
        line = Text.assemble((icon, style), " ", message)
        if detail:
            line.append(f" {detail}", style="dim")
        self._console.print(line)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Show a spinner while work is in progress."""
        with self._console.status(f"[bold cyan]{message}", spinner="dots"):
            yield

    def success(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("✓", "bold green", message, detail)

    def warn(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("⚠", "yellow", message, detail)

    def error(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("✗", "bold red", message, detail)

    def info(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("•", "blue", message, detail)

    def header(self, title: str, **fields: str) -> None:
        """Run banner: one `key: value` line per field."""
        body = "\n".join(f"[bold]{k}:[/bold] {v}" for k, v in fields.items())
        self._console.print(Panel(body, title=f"[cyan]{title}[/cyan]", border_style="blue"))

    def summary(self, title: str, **fields: str) -> None:
        """End-of-run table in a green panel."""
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column(justify="right")
        for key, value in fields.items():
            table.add_row(key.replace("_", " "), str(value))
        self._console.print(Panel(table, title=f"[cyan]{title}[/cyan]", border_style="green"))


console = Console()
