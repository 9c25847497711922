"""Graph API: build, cancel, filtered views, legend breakdown and CSV export."""

from __future__ import annotations

import asyncio
import dataclasses
import io
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from typegraph.analysis.filters import (
    filter_by_module_incidence,
    filter_by_modules,
    filter_by_type,
)
from typegraph.analysis.graph_models import DependencyGraph
from typegraph.analysis.legend import referenced_modules, visible_modules
from typegraph.errors import BuildCancelledError, BuildInProgressError, RootResolutionError
from typegraph.exporter import export_csv
from typegraph.models import BuildResult, LegendEntry
from typegraph.pipeline import run_build
from typegraph.web.api import get_session_or_404
from typegraph.web.state import GraphSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/graph")


class BuildRequest(BaseModel):
    scan_id: str
    type_name: str
    member: str | None = None
    color_seed: int | None = None


class TypeFilterRequest(BaseModel):
    scan_id: str
    name: str


class ModulesFilterRequest(BaseModel):
    scan_id: str
    modules: list[str]


class IncidenceFilterRequest(BaseModel):
    scan_id: str
    module: str


def _legend_payload(legend: list[LegendEntry]) -> list[dict]:
    return [
        {"module": e.module_id, "color": e.color, "color_name": e.color_name, "visible": e.visible}
        for e in legend
    ]


def _graph_payload(session: GraphSession, graph: DependencyGraph, legend: list[LegendEntry]) -> dict:
    data = graph.to_dict()
    data["scan_id"] = session.id
    data["legend"] = _legend_payload(legend)
    return data


def _require_result(session: GraphSession) -> BuildResult:
    if session.result is None:
        raise HTTPException(404, "No graph has been built for this scan")
    return session.result


def _run_build(session: GraphSession, req: BuildRequest) -> BuildResult:
    if not session.build_lock.acquire(blocking=False):
        raise BuildInProgressError("A build is already running for this scan")
    try:
        session.status = "busy"
        session.error = None
        session.cancel_event.clear()
        config = session.config
        if req.color_seed is not None:
            config = dataclasses.replace(config, color_seed=req.color_seed)

        result = run_build(
            config, req.type_name, member=req.member,
            provider=session.provider, cancel_event=session.cancel_event,
        )
        # Swap only once the build has finished
        session.result = result
        session.status = "idle"
        return result
    except Exception as e:
        session.status = "error"
        session.error = str(e)
        raise
    finally:
        session.build_lock.release()


@router.post("/build")
async def build_graph(req: BuildRequest):
    session = get_session_or_404(req.scan_id)
    try:
        result = await asyncio.to_thread(_run_build, session, req)
    except BuildInProgressError as e:
        raise HTTPException(409, str(e))
    except BuildCancelledError as e:
        raise HTTPException(409, str(e))
    except RootResolutionError as e:
        raise HTTPException(400, str(e))

    logger.info("Built graph for %s in scan %s", result.root_name, session.id)
    return _graph_payload(session, result.graph, result.legend)


@router.get("/{scan_id}/status")
async def build_status(scan_id: str):
    session = get_session_or_404(scan_id)
    graph = session.result.graph if session.result else None
    return {
        "scan_id": scan_id,
        "status": session.status,
        "error": session.error,
        "root": session.result.root_name if session.result else None,
        "nodes": len(graph.nodes) if graph else 0,
        "edges": len(graph.edges) if graph else 0,
    }


@router.post("/{scan_id}/cancel")
async def cancel_build(scan_id: str):
    session = get_session_or_404(scan_id)
    running = session.build_lock.locked()
    if running:
        session.cancel_event.set()
    return {"scan_id": scan_id, "cancelled": running}


@router.get("/{scan_id}")
async def get_graph(scan_id: str):
    session = get_session_or_404(scan_id)
    result = _require_result(session)
    return _graph_payload(session, result.graph, result.legend)


@router.post("/filter/type")
async def filter_type(req: TypeFilterRequest):
    session = get_session_or_404(req.scan_id)
    result = _require_result(session)
    view = filter_by_type(result.graph, req.name)
    if not view.nodes:
        raise HTTPException(404, f"Type not in graph: {req.name}")
    return _graph_payload(session, view, result.legend)


@router.post("/filter/modules")
async def filter_modules(req: ModulesFilterRequest):
    session = get_session_or_404(req.scan_id)
    result = _require_result(session)
    enabled = set(req.modules)
    legend = [dataclasses.replace(e, visible=e.module_id in enabled) for e in result.legend]
    return _graph_payload(session, filter_by_modules(result.graph, visible_modules(legend)), legend)


@router.post("/filter/incidence")
async def filter_incidence(req: IncidenceFilterRequest):
    session = get_session_or_404(req.scan_id)
    result = _require_result(session)
    return _graph_payload(session, filter_by_module_incidence(result.graph, req.module), result.legend)


@router.get("/{scan_id}/breakdown")
async def get_breakdown(scan_id: str):
    session = get_session_or_404(scan_id)
    result = _require_result(session)
    return {
        "scan_id": scan_id,
        "legend": _legend_payload(result.legend),
        "modules": result.breakdown,
    }


@router.get("/{scan_id}/modules/{module_id}/referenced")
async def get_referenced_modules(scan_id: str, module_id: str):
    session = get_session_or_404(scan_id)
    result = _require_result(session)
    return {"module": module_id, "referenced": referenced_modules(result.graph, module_id)}


@router.get("/{scan_id}/export.csv")
async def export_graph_csv(scan_id: str):
    session = get_session_or_404(scan_id)
    result = _require_result(session)

    buf = io.StringIO()
    await asyncio.to_thread(
        export_csv, result.graph, session.provider, buf, session.config.export_flush_every,
    )
    return PlainTextResponse(
        buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{result.root_name}.csv"'},
    )
