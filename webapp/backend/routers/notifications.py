"""Notification settings, the notification log, reminders and sending."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from config import settings
from deps import commit, domain_errors, get_store, get_store_sync, require_roles
from escala import notifications
from escala.models import ROLE_ADMIN, STATUS_FAILED, STATUS_PENDING, STATUS_SENT
from schemas import NotificationSettingsUpdate
from store_sync import StoreSync

router = APIRouter()

admins = require_roles(ROLE_ADMIN)


def get_sender() -> notifications.ResendSender:
    return notifications.ResendSender(settings.resend_api_key, settings.email_from)


@router.get("/settings")
def get_settings(store: dict = Depends(get_store), user: dict = Depends(admins)):
    return notifications.initialize_notification_settings(store.get("notification_settings"))


@router.put("/settings")
def update_settings(
    data: NotificationSettingsUpdate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = notifications.update_notification_settings(store, **data.model_dump(exclude_unset=True))
    commit(sync, store)
    return store["notification_settings"]


@router.get("/logs")
def list_logs(
    status: Optional[str] = None,
    limit: int = 100,
    store: dict = Depends(get_store),
    user: dict = Depends(admins),
):
    logs = store.get("notification_logs") or []
    if status:
        logs = [log for log in logs if log.get("status") == status]
    return logs[:limit]


@router.post("/reminders")
def queue_reminders(
    today: Optional[date] = None,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    """Queue reminders for tomorrow's shifts (tomorrow relative to `today`, default the current date)."""
    before = len(store.get("notification_logs") or [])
    store = notifications.send_daily_reminders(store, today)
    commit(sync, store)
    return {"queued": len(store.get("notification_logs") or []) - before}


@router.post("/process")
def process_pending(
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
    sender=Depends(get_sender),
):
    store = notifications.process_pending_notifications(store, sender)
    commit(sync, store)
    logs = store.get("notification_logs") or []
    return {
        "sent": sum(1 for log in logs if log.get("status") == STATUS_SENT),
        "failed": sum(1 for log in logs if log.get("status") == STATUS_FAILED),
        "pending": sum(1 for log in logs if log.get("status") == STATUS_PENDING),
    }
