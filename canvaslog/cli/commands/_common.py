"""
Helpers shared by CLI commands.
"""

import dataclasses
import json
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console

from ...config import Settings
from ...log.file_store import FileEventStore
from ...workspace import Workspace, open_workspace

console = Console()

LOG_OPTION_HELP = "Path to event log file (default: CANVASLOG_LOG_PATH)"


def resolve_settings(log_path: Optional[str]) -> Settings:
    settings = Settings.from_env()
    if log_path:
        settings = dataclasses.replace(settings, log_path=log_path)
    return settings


def open_from_options(log_path: Optional[str]) -> Workspace:
    settings = resolve_settings(log_path)
    return open_workspace(settings, store=FileEventStore(settings.log_path))


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def fail(json_output: bool, message: str, code: int = 2, **fields: Any) -> NoReturn:
    if json_output:
        print_json({"error": message, **fields})
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)
