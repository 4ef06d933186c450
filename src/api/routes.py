"""API routes for targets and uptime series.

Endpoints:
  GET    /api/targets           — every target with its 24h hourly series
  POST   /api/targets           — register a target
  GET    /api/targets/{alias}   — hourly + daily series and incidents
  DELETE /api/targets/{alias}   — delete a target and its history
  POST   /api/check             — run one probing cycle now
  GET    /api/status            — scheduler status
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

router = APIRouter()


class TargetIn(BaseModel):
    alias: str
    url: str


@router.get("/targets")
def list_targets(request: Request) -> dict[str, Any]:
    """Overview of every target."""
    service = request.app.state.service
    return {"targets": service.get_overview()}


@router.post("/targets", status_code=201)
def create_target(payload: TargetIn, request: Request) -> dict[str, Any]:
    """Register a new target (ValidationFailure → 422)."""
    service = request.app.state.service
    target = service.register_target(payload.alias, payload.url)
    return target.to_dict()


@router.get("/targets/{alias}")
def get_target(alias: str, request: Request) -> dict[str, Any]:
    service = request.app.state.service
    detail = service.get_target_detail(alias)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Target not found: {alias}")
    return detail


@router.delete("/targets/{alias}")
def delete_target(alias: str, request: Request) -> dict[str, Any]:
    service = request.app.state.service
    if not service.delete_target(alias):
        raise HTTPException(status_code=404, detail=f"Target not found: {alias}")
    return {"deleted": alias}


@router.post("/check")
async def run_check(request: Request) -> dict[str, Any]:
    """Trigger an immediate cycle outside the regular schedule."""
    scheduler = request.app.state.scheduler
    outcomes = await scheduler.run_cycle()
    return {"results": [o.to_dict() for o in outcomes]}


@router.get("/status")
def status(request: Request) -> dict[str, Any]:
    scheduler = request.app.state.scheduler
    service = request.app.state.service
    last = scheduler.last_cycle_at
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "running": scheduler.running,
        "interval_s": scheduler.interval,
        "cycles_run": scheduler.cycles_run,
        "last_cycle_at": last.isoformat() if last else None,
        "targets": len(service.store.list_targets()),
    }
