"""
Replay command: rebuild canvas state from the log
"""

import json
from datetime import datetime
from typing import Optional

import typer
from rich.syntax import Syntax
from rich.table import Table

from ...canvas.state import CanvasState
from ...core.canonical import parse_timestamp
from ...core.errors import CanvasLogError
from ...replay.runner import replay
from ...snapshot.codec import compute_state_hash
from ...snapshot.store import SnapshotStore
from ._common import LOG_OPTION_HELP, console, fail, open_from_options, print_json


def replay_command(
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    aggregate_id: Optional[str] = typer.Option(None, "--aggregate", "-a", help="Replay one aggregate"),
    until_event: Optional[str] = typer.Option(None, "--until-event", "-u", help="Stop after this event id or sequence"),
    until_time: Optional[str] = typer.Option(None, "--until-time", help="Skip events after this ISO-8601 timestamp"),
    types: Optional[str] = typer.Option(None, "--types", help="Comma-separated event type allow-list"),
    snapshot_dir: Optional[str] = typer.Option(None, "--from-snapshot", help="Resume from the latest snapshot in this directory"),
    show_state: bool = typer.Option(False, "--show-state", "-s", help="Show final state"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay the event log and report the reconstructed state.

    Examples:
        canvaslog replay
        canvaslog replay --aggregate canvas-1 --until-event 42
        canvaslog replay --types ADD_NODE,MOVE_NODE --show-state
        canvaslog replay --from-snapshot /tmp/canvaslog/snapshots --json
    """
    ws = open_from_options(log_path)
    up_to_timestamp: Optional[datetime] = None
    if until_time:
        try:
            up_to_timestamp = parse_timestamp(until_time)
        except ValueError:
            fail(json_output, f"Invalid timestamp: {until_time}")

    snapshot = None
    if snapshot_dir:
        snapshot = SnapshotStore(snapshot_dir).find_latest(aggregate_id=aggregate_id)

    try:
        result = replay(
            ws.log,
            ws.reducer,
            ws.initial_state(),
            up_to_timestamp=up_to_timestamp,
            up_to_event_id=until_event,
            event_types=types.split(",") if types else None,
            aggregate_id=aggregate_id,
            snapshot=snapshot,
            restore=CanvasState.from_dict,
        )
    except CanvasLogError as e:
        fail(json_output, str(e), code=1, reason=e.code)

    state = result.state
    state_hash = compute_state_hash(state)

    if json_output:
        output = {
            "success": True,
            "events_replayed": result.applied,
            "last_seq": result.last_seq,
            "from_snapshot": snapshot.seq if snapshot is not None else None,
            "state_hash": state_hash,
            "nodes": len(state.nodes),
            "edges": len(state.edges),
        }
        if show_state:
            output["state"] = state.to_dict()
        print_json(output)
        return

    if snapshot is not None:
        console.print(f"Resumed from snapshot at seq [cyan]{snapshot.seq}[/cyan]")
    console.print(f"[green]✓ Replayed {result.applied} events[/green] (last seq {result.last_seq})")
    console.print(f"  State hash: [yellow]{state_hash}[/yellow]")

    table = Table(title="Canvas")
    table.add_column("Element", style="green")
    table.add_column("Count", style="cyan", justify="right")
    table.add_row("Nodes", str(len(state.nodes)))
    table.add_row("Edges", str(len(state.edges)))
    table.add_row("Selected", str(len(state.selection)))
    console.print(table)

    if show_state:
        console.print("\n[bold]Final State:[/bold]")
        console.print(Syntax(json.dumps(state.to_dict(), indent=2), "json", theme="monokai"))
