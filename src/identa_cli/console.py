"""Console output helpers built on ``rich``.

Messages are escaped before styling, so key ids and paths containing
square brackets print literally.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def info(message: str) -> None:
    console.print(escape(message), style="white")


def success(message: str) -> None:
    console.print(f"[green]✅ {escape(message)}[/green]")


def warn(message: str) -> None:
    console.print(f"[yellow]⚠️  {escape(message)}[/yellow]")


def debug(message: str) -> None:
    console.print(f"[blue]🔧 {escape(message)}[/blue]")


def hint(message: str) -> None:
    console.print(f"   {escape(message)}", style="grey50")


def error(message: str) -> None:
    err_console.print(f"[red]❌ {escape(message)}[/red]")
