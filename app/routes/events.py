"""
Workflow event feed for dashboards.

Dashboards poll this (or receive a push) and then reload their full complaint
list; there is no incremental merge.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.settings import settings
from app.services.notification_service import NotificationService, get_notification_service

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("")
async def get_events(
    since: int = Query(0, ge=0, description="Return events after this sequence number"),
    complaint_id: Optional[str] = Query(None),
    notifications: NotificationService = Depends(get_notification_service),
):
    events = notifications.recent(since=since, complaint_id=complaint_id)
    return {
        "events": events,
        "last_sequence": events[-1].sequence if events else since,
        "poll_interval_seconds": settings.POLL_INTERVAL_SECONDS,
    }
