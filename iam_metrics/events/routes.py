"""Ingest routes feeding user and admin events into the recorder."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from iam_metrics.events.recorder import MetricEventRecorder
from iam_metrics.events.schemas import AdminEvent, RecordResponse, UserEvent
from iam_metrics.lib.realm_client import RealmLookupError

router = APIRouter()


def get_recorder(request: Request) -> MetricEventRecorder:
    recorder: MetricEventRecorder | None = getattr(request.app.state, "recorder", None)
    if recorder is None:
        raise RuntimeError("Metric event recorder not configured on application state")
    return recorder


# Sync handlers: FastAPI runs them on its worker threadpool, so a slow realm
# lookup stalls only the request that triggered it.
@router.post("/events")
def record_user_event(event: UserEvent, recorder: MetricEventRecorder = Depends(get_recorder)) -> JSONResponse:
    """Count a single user event."""

    try:
        recorded = recorder.record_event(event)
    except RealmLookupError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return JSONResponse({"ok": True, "data": RecordResponse(recorded=recorded).model_dump()})


@router.post("/admin-events")
def record_admin_event(
    event: AdminEvent,
    include_representation: bool = Query(default=False),
    recorder: MetricEventRecorder = Depends(get_recorder),
) -> JSONResponse:
    """Count a single admin event."""

    try:
        recorded = recorder.record_admin_event(event, include_representation)
    except RealmLookupError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return JSONResponse({"ok": True, "data": RecordResponse(recorded=recorded).model_dump()})
