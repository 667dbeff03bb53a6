"""
Event log commands: tail, inspect, verify
"""

import json
import os
from typing import Any, Dict, List, Optional

import typer
from rich.syntax import Syntax
from rich.table import Table

from ...core.errors import IntegrityError
from ...log.integrity import verify_chain
from ._common import LOG_OPTION_HELP, console, fail, print_json, resolve_settings

app = typer.Typer()


def _read_records(log_path: str) -> List[Dict[str, Any]]:
    """Raw chain records, so hashes can be shown next to events."""
    records = []
    with open(log_path, "r") as f:
        for line in f:
            if line.strip():
                records.append(json.loads(line))
    return records


def _aggregate_of(ev: Dict[str, Any]) -> str:
    payload = ev.get("payload")
    if isinstance(payload, dict) and isinstance(payload.get("aggregateId"), str):
        return payload["aggregateId"]
    return "-"


@app.command()
def tail(
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    lines: int = typer.Option(20, "--lines", "-n", help="Number of events to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show the newest events.

    Examples:
        canvaslog log tail
        canvaslog log tail --lines 5 --json
    """
    path = resolve_settings(log_path).log_path
    if not os.path.exists(path):
        fail(json_output, "Log file not found", path=path)

    records = _read_records(path)[-lines:] if lines > 0 else []

    if json_output:
        print_json({"events": records, "count": len(records)})
        return

    if not records:
        console.print("[yellow]Event log is empty[/yellow]")
        return

    table = Table(title=f"Event Log: {path}")
    table.add_column("Seq", style="cyan", justify="right")
    table.add_column("Type", style="green")
    table.add_column("Aggregate", style="yellow")
    table.add_column("Actor")
    table.add_column("Timestamp", style="dim")
    table.add_column("Hash (prefix)", style="dim")
    for rec in records:
        ev = rec["event"]
        table.add_row(
            str(ev["seq"]),
            ev["type"],
            _aggregate_of(ev),
            ev.get("actor_id") or "-",
            ev["timestamp"],
            rec["event_hash"][:16],
        )
    console.print(table)
    console.print(f"\n[bold]Shown:[/bold] {len(records)}")


@app.command()
def inspect(
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    from_seq: Optional[int] = typer.Option(None, "--from", help="Start from sequence number"),
    to_seq: Optional[int] = typer.Option(None, "--to", help="End at sequence number"),
    event_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by event type"),
    type_prefix: Optional[str] = typer.Option(None, "--prefix", help="Filter by event type prefix"),
    aggregate_id: Optional[str] = typer.Option(None, "--aggregate", "-a", help="Filter by aggregate id"),
    show_payload: bool = typer.Option(False, "--payload", "-p", help="Show full payload"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Inspect events with filters.

    Examples:
        canvaslog log inspect --from 1 --to 10
        canvaslog log inspect --type ADD_NODE --payload
        canvaslog log inspect --prefix CHAIN_ --json
    """
    path = resolve_settings(log_path).log_path
    if not os.path.exists(path):
        fail(json_output, "Log file not found", path=path)

    records = []
    for rec in _read_records(path):
        ev = rec["event"]
        if from_seq is not None and ev["seq"] < from_seq:
            continue
        if to_seq is not None and ev["seq"] > to_seq:
            continue
        if event_type and ev["type"] != event_type:
            continue
        if type_prefix and not ev["type"].startswith(type_prefix):
            continue
        if aggregate_id and _aggregate_of(ev) != aggregate_id:
            continue
        records.append(rec)

    if json_output:
        if not show_payload:
            for rec in records:
                rec["event"]["payload"] = "<hidden>"
        print_json({"events": records, "count": len(records)})
        return

    if not records:
        console.print("[yellow]No events match the filters[/yellow]")
        return

    for rec in records:
        ev = rec["event"]
        console.print(f"\n[bold cyan]Event {ev['seq']}[/bold cyan]")
        console.print(f"  Type: [green]{ev['type']}[/green]")
        console.print(f"  Id: {ev.get('id') or '-'}")
        console.print(f"  Aggregate: [yellow]{_aggregate_of(ev)}[/yellow]")
        console.print(f"  Actor: {ev.get('actor_id') or '-'}")
        console.print(f"  Timestamp: {ev['timestamp']}")
        console.print(f"  Hash: {rec['event_hash']}")
        console.print(f"  Prev Hash: {rec['prev_hash']}")
        if show_payload:
            console.print("  Payload:")
            console.print(Syntax(json.dumps(ev.get("payload"), indent=2), "json", theme="monokai"))

    console.print(f"\n[bold]Total events:[/bold] {len(records)}")


@app.command()
def verify(
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Recompute the hash chain and check sequence continuity.

    Exit code 1 when the log has been tampered with.
    """
    path = resolve_settings(log_path).log_path
    if not os.path.exists(path):
        fail(json_output, "Log file not found", path=path)

    try:
        count = verify_chain(path)
    except IntegrityError as e:
        fail(json_output, str(e), code=1, valid=False)

    if json_output:
        print_json({"valid": True, "events": count})
    else:
        console.print(f"[green]✓ Hash chain valid[/green] ({count} events)")
