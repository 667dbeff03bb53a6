"""
Wiring for one canvas workspace.

Builds the explicit registry, envelope, reducer and log from Settings.
Nothing here is process-global: every call returns a fresh, independent
set of collaborators.
"""

from dataclasses import dataclass
from typing import Optional

from .canvas.handlers import build_canvas_reducer
from .canvas.schemas import register_canvas_types
from .canvas.state import CanvasState, LayoutSettings
from .config import Settings
from .core.envelope import EventEnvelope
from .core.errors import NotFound
from .core.reducer import Reducer
from .core.registry import TypeRegistry
from .log.event_log import EventLog
from .log.file_store import FileEventStore
from .log.store import EventStore
from .query import QueryService
from .replay.runner import replay
from .service import EventService
from .session import CanvasSession
from .snapshot.auto import AutoSnapshotter
from .snapshot.store import SnapshotStore


@dataclass
class Workspace:
    settings: Settings
    registry: TypeRegistry
    envelope: EventEnvelope
    reducer: Reducer
    log: EventLog
    query: QueryService
    service: EventService
    snapshotter: Optional[AutoSnapshotter] = None

    def initial_state(self) -> CanvasState:
        return CanvasState.initial(LayoutSettings.from_settings(self.settings))

    def session(
        self,
        actor_id: Optional[str] = None,
        aggregate_id: Optional[str] = None,
        session_id: Optional[str] = None,
        catch_up: bool = True,
    ) -> CanvasSession:
        """
        Open a session. With ``catch_up`` the starting state is a replay of
        the log (scoped to ``aggregate_id`` when given).
        """
        state = self.initial_state()
        if catch_up and self.log.tail() > 0:
            try:
                state = replay(self.log, self.reducer, state, aggregate_id=aggregate_id).state
            except NotFound:
                pass  # new aggregate
        return CanvasSession(
            self.log,
            self.reducer,
            state=state,
            actor_id=actor_id,
            aggregate_id=aggregate_id,
            session_id=session_id,
        )


def open_workspace(
    settings: Optional[Settings] = None,
    store: Optional[EventStore] = None,
    clock=None,
) -> Workspace:
    """
    Build a workspace.

    Args:
        settings: Defaults to ``Settings.from_env()``
        store: Defaults to a FileEventStore at ``settings.log_path``
        clock: Time source for the envelope and service metadata
    """
    settings = settings or Settings.from_env()
    registry = register_canvas_types(TypeRegistry(permissive=settings.permissive))
    envelope = EventEnvelope(registry, clock=clock)
    reducer = build_canvas_reducer(registry)
    log = EventLog(store if store is not None else FileEventStore(settings.log_path), envelope)
    layout = LayoutSettings.from_settings(settings)

    def initial_state() -> CanvasState:
        return CanvasState.initial(layout)

    service = EventService(
        log,
        reducer,
        initial_state=initial_state,
        clock=clock,
        batch_max=settings.batch_max,
        page_limit_max=settings.page_limit_max,
    )
    snapshotter = None
    if settings.auto_snapshot:
        snapshotter = AutoSnapshotter(
            log,
            reducer,
            initial_state,
            CanvasState.from_dict,
            SnapshotStore(settings.snapshot_dir),
            settings.snapshot_interval,
            clock=clock,
        )
        log.subscribe(snapshotter)
    return Workspace(
        settings=settings,
        registry=registry,
        envelope=envelope,
        reducer=reducer,
        log=log,
        query=QueryService(log),
        service=service,
        snapshotter=snapshotter,
    )
