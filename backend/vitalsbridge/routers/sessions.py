from __future__ import annotations
from typing import List
from fastapi import APIRouter, Request
from ..models import SessionRecord

router = APIRouter(tags=["sessions"])

@router.get("/api/logs", response_model=List[SessionRecord], response_model_by_alias=True)
def session_logs(request: Request):
    return request.app.state.store.read_all()

@router.get("/health")
async def health(request: Request):
    active = request.app.state.tracker.active
    return {
        "status": "ok",
        "sessions": len(request.app.state.store.read_all()),
        "active": active.name if active else None,
    }
