"""
Event commands: append, stats
"""

import json
from typing import Optional

import typer
from rich.table import Table

from ...core.errors import CanvasLogError
from ._common import LOG_OPTION_HELP, console, fail, open_from_options, print_json


def append_command(
    event_type: str = typer.Argument(..., help="Event type, e.g. ADD_NODE"),
    payload: str = typer.Option(..., "--payload", "-p", help="Payload as JSON (use 'null' for an empty payload)"),
    user_id: Optional[str] = typer.Option(None, "--user", help="Actor id"),
    event_id: Optional[str] = typer.Option(None, "--id", help="External event id"),
    expected_seq: Optional[int] = typer.Option(None, "--expect", help="Append only if the log tail is this sequence"),
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Validate and append one event.

    Examples:
        canvaslog append ADD_NODE -p '{"nodeId": "n1", "nodeType": "document", "position": {"x": 103, "y": 97}}'
        canvaslog append CHAIN_STARTED -p null --user alice
    """
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        fail(json_output, f"Payload is not valid JSON: {e}")

    ws = open_from_options(log_path)
    request = {"type": event_type, "payload": parsed, "userId": user_id, "id": event_id, "expectedSequence": expected_seq}
    try:
        response = ws.service.create_event({k: v for k, v in request.items() if v is not None or k == "payload"})
    except CanvasLogError as e:
        fail(json_output, str(e), code=1, reason=e.code)

    data = response["data"]
    if json_output:
        print_json(data)
    else:
        console.print(f"[green]✓ Appended {data['type']}[/green] at seq [cyan]{data['sequence']}[/cyan]")


def stats_command(
    group_by: str = typer.Option("type", "--group-by", "-g", help="type, userId, hour, day, week or month"),
    from_ts: Optional[str] = typer.Option(None, "--from", help="Start timestamp (ISO-8601)"),
    to_ts: Optional[str] = typer.Option(None, "--to", help="End timestamp (ISO-8601)"),
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Grouped event statistics.

    Percentages are rounded to 2 decimals and may not add up to exactly 100.

    Examples:
        canvaslog stats
        canvaslog stats --group-by day --json
    """
    ws = open_from_options(log_path)
    query = {"groupBy": group_by, "fromTimestamp": from_ts, "toTimestamp": to_ts}
    try:
        data = ws.service.statistics({k: v for k, v in query.items() if v is not None})["data"]
    except CanvasLogError as e:
        fail(json_output, str(e), code=1, reason=e.code)

    if json_output:
        print_json(data)
        return

    table = Table(title=f"Events by {group_by}")
    table.add_column("Key", style="green")
    table.add_column("Count", style="cyan", justify="right")
    table.add_column("%", justify="right")
    for group in data["groups"]:
        table.add_row(group["key"], str(group["count"]), f"{group['percentage']:.2f}")
    console.print(table)
    console.print(f"\n[bold]Total events:[/bold] {data['total']}")
