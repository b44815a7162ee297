"""Minimal Rich console helpers."""

from rich.console import Console

console = Console()
err_console = Console(stderr=True)

LOGO = r"""
    ____  _ ____                __
   / __ )(_) __/_____*_*  _____/ /_
  / __  / / /_/ ___/ __ \/ ___/ __/
 / /_/ / / __/ /  / /_/ (__  ) /_
/_____/_/_/ /_/   \____/____/\__/
"""


def print_logo() -> None:
    """Display the Bifrost ASCII logo."""
    console.print(LOGO, style="bold cyan", highlight=False)


def info(msg: str) -> None:
    console.print(f"[bold blue]\\[i][/] {msg}")


def success(msg: str) -> None:
    console.print(f"[bold green]\\[+][/] {msg}")


def warn(msg: str) -> None:
    err_console.print(f"[bold yellow]\\[!][/] {msg}")


def error(msg: str) -> None:
    err_console.print(f"[bold red]\\[-][/] {msg}")


def human_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    size = n / 1024
    for unit in ("KB", "MB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
