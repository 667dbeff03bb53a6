"""
Runtime configuration from ``CANVASLOG_*`` environment variables.

Environment Variables:
    CANVASLOG_GRID_UNIT: grid snap unit - default: 8
    CANVASLOG_NODE_RADIUS: node half-size for collision boxes - default: 30
    CANVASLOG_MAX_SEARCH_RADIUS: placement search rings - default: 32
    CANVASLOG_ZOOM_MIN / CANVASLOG_ZOOM_MAX: zoom clamp - default: 0.1 / 5.0
    CANVASLOG_PAN_LIMIT: max absolute pan offset - default: 10000
    CANVASLOG_PERMISSIVE: accept unknown event types (true/false) - default: false
    CANVASLOG_LOG_PATH: JSONL event log path - default: /tmp/canvaslog/events.log
    CANVASLOG_SNAPSHOT_DIR: snapshot directory - default: /tmp/canvaslog/snapshots
    CANVASLOG_SNAPSHOT_INTERVAL: events between snapshots - default: 50
    CANVASLOG_AUTO_SNAPSHOT: snapshot every SNAPSHOT_INTERVAL appends (true/false) - default: false
    CANVASLOG_BATCH_MAX: max events per batch - default: 100
    CANVASLOG_PAGE_LIMIT_MAX: max page size for listings - default: 100
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(key: str) -> Optional[int]:
    val = os.getenv(key)
    if not val:
        return None
    try:
        parsed = int(val)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _env_float(key: str) -> Optional[float]:
    val = os.getenv(key)
    if not val:
        return None
    try:
        parsed = float(val)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    grid_unit: int = 8
    node_radius: int = 30
    max_search_radius: int = 32
    zoom_min: float = 0.1
    zoom_max: float = 5.0
    pan_limit: float = 10000.0
    permissive: bool = False
    log_path: str = "/tmp/canvaslog/events.log"
    snapshot_dir: str = "/tmp/canvaslog/snapshots"
    snapshot_interval: int = 50
    batch_max: int = 100
    page_limit_max: int = 100
    auto_snapshot: bool = False

    @staticmethod
    def from_env() -> "Settings":
        d = Settings()
        return Settings(
            grid_unit=_env_int("CANVASLOG_GRID_UNIT") or d.grid_unit,
            node_radius=_env_int("CANVASLOG_NODE_RADIUS") or d.node_radius,
            max_search_radius=_env_int("CANVASLOG_MAX_SEARCH_RADIUS") or d.max_search_radius,
            zoom_min=_env_float("CANVASLOG_ZOOM_MIN") or d.zoom_min,
            zoom_max=_env_float("CANVASLOG_ZOOM_MAX") or d.zoom_max,
            pan_limit=_env_float("CANVASLOG_PAN_LIMIT") or d.pan_limit,
            permissive=_env_bool("CANVASLOG_PERMISSIVE", d.permissive),
            log_path=os.getenv("CANVASLOG_LOG_PATH") or d.log_path,
            snapshot_dir=os.getenv("CANVASLOG_SNAPSHOT_DIR") or d.snapshot_dir,
            snapshot_interval=_env_int("CANVASLOG_SNAPSHOT_INTERVAL") or d.snapshot_interval,
            batch_max=_env_int("CANVASLOG_BATCH_MAX") or d.batch_max,
            page_limit_max=_env_int("CANVASLOG_PAGE_LIMIT_MAX") or d.page_limit_max,
            auto_snapshot=_env_bool("CANVASLOG_AUTO_SNAPSHOT", d.auto_snapshot),
        )
