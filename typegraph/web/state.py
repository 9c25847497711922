"""Per-scan graph sessions held in memory by the JSON API."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from typegraph.metadata.base import BaseMetadataProvider
from typegraph.models import BuildResult, GraphConfig, ModuleEntry


@dataclass
class GraphSession:
    config: GraphConfig
    provider: BaseMetadataProvider
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    modules: dict[str, ModuleEntry] = field(default_factory=dict)
    status: str = "idle"  # idle → busy → idle | error
    error: str | None = None
    result: BuildResult | None = None  # the full graph; filtered views never replace it
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    build_lock: threading.Lock = field(default_factory=threading.Lock)
    cancel_event: threading.Event = field(default_factory=threading.Event)


class AppState:
    """Singleton in-memory state shared by all API routes."""

    def __init__(self):
        self.sessions: dict[str, GraphSession] = {}

    def add_session(self, session: GraphSession) -> None:
        self.sessions[session.id] = session

    def get_session(self, session_id: str) -> GraphSession | None:
        return self.sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if not session:
            return False
        session.cancel_event.set()
        return True


# Shared by every router
state = AppState()
