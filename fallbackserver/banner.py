from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import ServerConfig


def build_banner(config: ServerConfig, root: str, url: str) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("URL", url)
    table.add_row("Root", root)
    table.add_row("Origin", config.remote_origin)
    table.add_row("Timeout", f"{config.timeout:g} s")

    return Panel(
        table,
        title="🌐 [bold cyan]Fallback Server[/bold cyan]",
        subtitle="Press Ctrl+C to stop",
        border_style="green",
        box=box.ROUNDED,
        padding=(1, 2),
    )


def print_banner(config: ServerConfig, root: str, url: str, console: Console = None) -> None:
    # stderr, so stdout stays plain log lines for tooling
    console = console or Console(stderr=True)
    console.print(build_banner(config, root, url))
