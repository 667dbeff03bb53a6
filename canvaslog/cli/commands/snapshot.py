"""
Snapshot commands: create, verify
"""

from typing import Optional

import typer

from ...core.errors import CanvasLogError
from ...snapshot import (
    SigningKey,
    Snapshot,
    SnapshotStore,
    VerifyingKey,
    ensure_keypair,
    snapshot_from_log,
    verify_snapshot,
)
from ._common import LOG_OPTION_HELP, console, fail, open_from_options, print_json

app = typer.Typer()


@app.command()
def create(
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="Snapshot directory (default: CANVASLOG_SNAPSHOT_DIR)"),
    aggregate_id: Optional[str] = typer.Option(None, "--aggregate", "-a", help="Scope the snapshot to one aggregate"),
    up_to: Optional[int] = typer.Option(None, "--up-to", help="Snapshot the state at this sequence"),
    key_path: Optional[str] = typer.Option(None, "--key", "-k", help="Ed25519 private key (PEM) to sign with"),
    sign: bool = typer.Option(False, "--sign", help="Sign with the default key, generating it if missing"),
    keep: Optional[int] = typer.Option(None, "--keep", help="Rotate, keeping only the newest N snapshots"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay the log and write a snapshot.

    Examples:
        canvaslog snapshot create
        canvaslog snapshot create --aggregate canvas-1 --key ~/.canvaslog/keys/snapshot_ed25519
        canvaslog snapshot create --sign --keep 5 --json
    """
    ws = open_from_options(log_path)
    store = SnapshotStore(directory or ws.settings.snapshot_dir)
    if sign and not key_path:
        key_path, _ = ensure_keypair()
    signing_key = SigningKey.load_from_file(key_path) if key_path else None

    try:
        snap = snapshot_from_log(
            ws.log,
            ws.reducer,
            ws.initial_state(),
            aggregate_id=aggregate_id,
            up_to_seq=up_to,
            signing_key=signing_key,
        )
    except CanvasLogError as e:
        fail(json_output, str(e), code=1, reason=e.code)

    path = store.save(snap)
    deleted = store.rotate(keep) if keep else []

    if json_output:
        print_json({
            "path": path,
            "seq": snap.seq,
            "aggregate_id": snap.aggregate_id,
            "state_hash": snap.state_hash,
            "signed": snap.is_signed,
            "rotated": deleted,
        })
        return

    console.print(f"[green]✓ Snapshot written[/green] {path}")
    console.print(f"  Seq: [cyan]{snap.seq}[/cyan]")
    console.print(f"  State hash: [yellow]{snap.state_hash}[/yellow]")
    console.print(f"  Signed: {'yes (' + snap.pubkey_id + ')' if snap.is_signed else 'no'}")
    if deleted:
        console.print(f"  Rotated out: {len(deleted)}")


@app.command()
def verify(
    snapshot_path: str = typer.Argument(..., help="Snapshot JSON file"),
    log_path: Optional[str] = typer.Option(None, "--log", "-l", help=LOG_OPTION_HELP),
    pubkey_path: Optional[str] = typer.Option(None, "--pubkey", help="Ed25519 public key (PEM)"),
    mode: str = typer.Option("full", "--mode", "-m", help="signature or full"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify a snapshot's signature and, in full mode, refold the log to compare.

    Exit code 1 when verification fails.
    """
    try:
        with open(snapshot_path, "r") as f:
            snap = Snapshot.from_json(f.read())
    except FileNotFoundError:
        fail(json_output, "Snapshot file not found", path=snapshot_path)
    verifying_key = VerifyingKey.load_from_file(pubkey_path) if pubkey_path else None

    ws = open_from_options(log_path)
    try:
        result = verify_snapshot(
            snap,
            verifying_key=verifying_key,
            source=ws.log,
            reducer=ws.reducer,
            initial_state=ws.initial_state(),
            mode=mode,
        )
    except (CanvasLogError, ValueError) as e:
        fail(json_output, str(e))

    if json_output:
        print_json({
            "valid": result.valid,
            "signature_valid": result.signature_valid,
            "state_hash_valid": result.state_hash_valid,
            "replay_state_valid": result.replay_state_valid,
            "error": result.error,
        })
    elif result.valid:
        console.print(f"[green]✓ Snapshot valid[/green] (seq {snap.seq}, mode {mode})")
    else:
        console.print(f"[red]✗ Snapshot invalid:[/red] {result.error}")

    if not result.valid:
        raise typer.Exit(1)
