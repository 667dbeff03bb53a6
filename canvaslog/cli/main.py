"""
canvaslog CLI - event-sourced canvas workspace

Main entrypoint for the canvaslog command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..logging_config import setup_logging
from .commands import events, log, replay, snapshot

app = typer.Typer(
    name="canvaslog",
    help="Event-sourced canvas workspace CLI",
    add_completion=False,
)

console = Console()

app.add_typer(log.app, name="log", help="Event log operations")
app.add_typer(snapshot.app, name="snapshot", help="Snapshot management")

app.command("append")(events.append_command)
app.command("stats")(events.stats_command)
app.command("replay")(replay.replay_command)


@app.command()
def version():
    """Show version information."""
    table = Table(show_header=False, box=None)
    table.add_row("[bold]canvaslog[/bold]", f"v{__version__}")
    console.print(table)


def main():
    """Main entrypoint."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
