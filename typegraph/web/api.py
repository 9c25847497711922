"""FastAPI routes: module scanning and session management."""

from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from typegraph.config import load_config
from typegraph.metadata import get_provider
from typegraph.models import ModuleEntry
from typegraph.pipeline import run_scan
from typegraph.web.state import GraphSession, state

router = APIRouter(prefix="/api")


# --- Request / Response models ---

class ScanRequest(BaseModel):
    path: str
    namespace_prefix: str | None = None


# --- Helpers ---

def _validate_path(p: str) -> Path:
    resolved = Path(p).expanduser().resolve()
    if not resolved.exists():
        raise HTTPException(404, f"Path not found: {resolved}")
    return resolved


def get_session_or_404(session_id: str) -> GraphSession:
    session = state.get_session(session_id)
    if not session:
        raise HTTPException(404, "Scan not found")
    return session


def _modules_payload(session: GraphSession, modules: dict[str, ModuleEntry]) -> list[dict]:
    return [
        {
            "name": name,
            "path": str(entry.path) if entry.path else None,
            "types": [session.provider.full_name(handle) for handle in entry.types],
        }
        for name, entry in modules.items()
    ]


# --- Endpoints ---

@router.post("/scan")
async def scan_modules(req: ScanRequest):
    source = _validate_path(req.path)
    config = load_config(source=source, namespace_prefix=req.namespace_prefix)
    provider = get_provider(config)
    session = GraphSession(config=config, provider=provider)

    # Registered only once the scan has succeeded
    try:
        session.modules = await asyncio.to_thread(run_scan, config, provider)
    except Exception as e:
        raise HTTPException(500, f"Scan failed: {e}")
    state.add_session(session)

    return {
        "scan_id": session.id,
        "source": str(source),
        "count": len(session.modules),
        "modules": _modules_payload(session, session.modules),
    }


@router.get("/scan/{scan_id}/modules")
async def list_modules(scan_id: str):
    session = get_session_or_404(scan_id)
    return {"scan_id": scan_id, "modules": _modules_payload(session, session.modules)}


@router.delete("/scan/{scan_id}")
async def delete_scan(scan_id: str):
    if not state.delete_session(scan_id):
        raise HTTPException(404, "Scan not found")
    return {"deleted": scan_id}
