"""Alert operations: manual check, scheduler status, notification inbox."""
import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from defi_alerts.deps import CurrentUserId, SchedulerDep, StoreDep
from defi_alerts.schemas import NotificationRecord, SchedulerStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/alerts", tags=["alerts"])

INBOX_LIMIT = 50


@router.post("/check")
async def trigger_alert_check(
    user_id: CurrentUserId,
    scheduler: SchedulerDep,
    background_tasks: BackgroundTasks,
) -> dict:
    """Start an alert check cycle without waiting for it.

    Outcomes arrive later as push notifications. If a cycle is already
    running the manual check is dropped.
    """
    logger.info("Manual alert check requested by user %s", user_id)
    background_tasks.add_task(scheduler.manual_check)
    return {
        "success": True,
        "data": {
            "message": "Alert check triggered. Notifications will be created if conditions are met."
        },
    }


@router.get("/scheduler", response_model=SchedulerStatus)
async def get_scheduler_status(scheduler: SchedulerDep) -> SchedulerStatus:
    """Whether the timer is running, whether a cycle is in progress, and the last cycle."""
    return scheduler.status()


@router.get(
    "/notifications",
    response_model=list[NotificationRecord],
    response_model_by_alias=True,
)
async def list_notifications(
    user_id: CurrentUserId,
    store: StoreDep,
    include_read: bool = Query(default=False, description="Include read notifications"),
) -> list[NotificationRecord]:
    """Most recent notifications for the current user, newest first."""
    return await store.list_notifications(
        user_id, include_read=include_read, limit=INBOX_LIMIT
    )


@router.put("/notifications/read-all")
async def mark_all_read(user_id: CurrentUserId, store: StoreDep) -> dict:
    """Mark every unread notification of the current user as read."""
    count = await store.mark_all_notifications_read(user_id)
    logger.info("Marked %d notifications read for user %s", count, user_id)
    return {"success": True, "data": {"updated": count}}


@router.put(
    "/notifications/{notification_id}/read",
    response_model=NotificationRecord,
    response_model_by_alias=True,
)
async def mark_read(
    notification_id: int, user_id: CurrentUserId, store: StoreDep
) -> NotificationRecord:
    """Mark one notification as read."""
    record = await store.mark_notification_read(user_id, notification_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return record
