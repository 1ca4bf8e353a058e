"""Months of the calendar: creation from the template, week views, deletion."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from deps import (
    commit, domain_errors, get_current_user, get_store, get_store_sync,
    linked_doctor_name, require_roles,
)
from escala import dates
from escala import schedule_manager as sm
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, ROLE_COORDINATOR
from schemas import ApplyTemplateRequest, MonthCreate
from store_sync import StoreSync

router = APIRouter()

planners = require_roles(ROLE_ADMIN, ROLE_ASSISTANT, ROLE_COORDINATOR)
managers = require_roles(ROLE_ADMIN, ROLE_ASSISTANT)


@router.get("/")
def list_months(store: dict = Depends(get_store), user: dict = Depends(get_current_user)):
    return [
        {"month_key": key, "name": dates.get_month_name(key)}
        for key in sorted(store.get("months") or {})
    ]


@router.post("/")
def create_month(
    data: MonthCreate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(planners),
):
    """Creates the month from the template; an existing month is left as it is."""
    with domain_errors():
        store = sm.create_month(store, data.month_key)
    commit(sync, store)
    return {"month_key": data.month_key, "name": dates.get_month_name(data.month_key)}


@router.post("/apply-template")
def apply_template(
    data: ApplyTemplateRequest,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(planners),
):
    if not data.month_keys:
        raise HTTPException(400, "No months selected")
    with domain_errors():
        store = sm.apply_template(store, data.month_keys, data.mode)
    commit(sync, store)
    return {"ok": True, "months": data.month_keys, "mode": data.mode}


@router.delete("/{month_key}")
def delete_month(
    month_key: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.delete_month(store, month_key)
    commit(sync, store)
    return {"ok": True}


@router.get("/{month_key}")
def get_month(month_key: str, store: dict = Depends(get_store), user: dict = Depends(get_current_user)):
    """The month's week grid (Monday first), without assignments."""
    with domain_errors():
        weeks = dates.get_weeks_for_month(month_key)
    return {
        "month_key": month_key,
        "name": dates.get_month_name(month_key),
        "exists": month_key in (store.get("months") or {}),
        "previous": dates.shift_month(month_key, -1),
        "next": dates.shift_month(month_key, 1),
        "weeks": [
            {"index": i, "range": dates.get_week_range_string(week), "days": week}
            for i, week in enumerate(weeks)
        ],
    }


@router.get("/{month_key}/weeks/{week_index}")
def get_week(
    month_key: str,
    week_index: int,
    doctor: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(get_current_user),
):
    """
    Hospitals, shifts and the seven days of one week with their assignments.
    A Medico only sees their own assignments; others may filter by doctor name.
    """
    with domain_errors():
        weeks = dates.get_weeks_for_month(month_key)
    if not 0 <= week_index < len(weeks):
        raise HTTPException(404, f"Week {week_index} not found in {month_key}")
    month_data = (store.get("months") or {}).get(month_key)
    view = sm.get_week_view_data(store.get("structure") or [], month_data, weeks[week_index])

    doctor = linked_doctor_name(store, user) or doctor
    if doctor:
        view = sm.apply_doctor_filter(view, doctor)
    return {
        "month_key": month_key,
        "week_index": week_index,
        "range": dates.get_week_range_string(weeks[week_index]),
        "locations": view,
    }
