"""Individual timesheets built from a doctor's month at one hospital."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from deps import commit, domain_errors, get_current_user, get_store, get_store_sync, require_roles
from escala import dates
from escala import timesheets as ts
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, ROLE_DOCTOR, TIMESHEET_FINALIZED
from schemas import TimesheetCreate, TimesheetIn
from store_sync import StoreSync

router = APIRouter()

managers = require_roles(ROLE_ADMIN, ROLE_ASSISTANT)


@router.get("/")
def list_timesheets(
    doctor_id: Optional[str] = None,
    month_key: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(get_current_user),
):
    if user["role"] == ROLE_DOCTOR:
        doctor_id = user.get("linked_doctor_id")
    return ts.filter_timesheets(store.get("timesheets") or [], doctor_id, month_key)


@router.post("/draft")
def build_draft(data: TimesheetCreate, store: dict = Depends(get_store), user: dict = Depends(managers)):
    """A new draft filled from the schedule; nothing is stored until it is saved."""
    with domain_errors():
        dates.parse_month_key(data.month_key)
        return ts.build_timesheet(store, data.doctor_id, data.hospital_id, data.month_key)


@router.put("/")
def save_timesheet(
    data: TimesheetIn,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    existing = next((t for t in store.get("timesheets") or [] if t["id"] == data.id), None)
    if existing and existing.get("status") == TIMESHEET_FINALIZED:
        raise HTTPException(400, "Timesheet is finalized")
    store = ts.save_timesheet(store, data.model_dump())
    commit(sync, store)
    return next(t for t in store["timesheets"] if t["id"] == data.id)


@router.post("/{timesheet_id}/finalize")
def finalize_timesheet(
    timesheet_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = ts.finalize_timesheet(store, timesheet_id)
    commit(sync, store)
    return next(t for t in store["timesheets"] if t["id"] == timesheet_id)


@router.delete("/{timesheet_id}")
def delete_timesheet(
    timesheet_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = ts.delete_timesheet(store, timesheet_id)
    commit(sync, store)
    return {"ok": True}
