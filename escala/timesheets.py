"""Individual timesheets: one doctor, one hospital, one month."""

import re
import time
import uuid
from typing import List, Optional, Tuple

from .models import DEFAULT_COMPANY, TIMESHEET_DRAFT, TIMESHEET_FINALIZED

DEFAULT_ENTRY = "07:00"
DEFAULT_EXIT = "19:00"

_CLOCK = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")


def _clock(part: str) -> Optional[str]:
    """'7' -> '07:00', '07:30' -> '07:30'; None for anything that is not a clock time."""
    match = _CLOCK.match(part.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2) or 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_entry_times(time_text: Optional[str]) -> Tuple[str, str]:
    """'19-07h' -> ('19:00', '07:00'); anything unusable gives the day shift 07:00-19:00."""
    if time_text:
        parts = time_text.lower().split("-")
        if len(parts) == 2:
            entry, exit_ = (_clock(p.strip().rstrip("h")) for p in parts)
            if entry and exit_:
                return entry, exit_
    return DEFAULT_ENTRY, DEFAULT_EXIT


def hours_between(entry: str, exit_: str) -> float:
    h1, m1 = (int(x) for x in entry.split(":"))
    h2, m2 = (int(x) for x in exit_.split(":"))
    diff = (h2 * 60 + m2) - (h1 * 60 + m1)
    if diff < 0:
        diff += 24 * 60
    return diff / 60


def _find(items: List[dict], item_id: str, label: str) -> dict:
    for item in items:
        if item["id"] == item_id:
            return item
    raise LookupError(f"{label} {item_id} not found")


def build_timesheet(store: dict, doctor_id: str, hospital_id: str, month_key: str) -> dict:
    """Draft timesheet from the doctor's assignments at the hospital in that month."""
    doctor = _find(store.get("doctors") or [], doctor_id, "Doctor")
    hospital = _find(store.get("structure") or [], hospital_id, "Hospital")
    shift_names = {s["id"]: s["name"] for s in hospital.get("shifts", [])}
    hospital_month = ((store.get("months") or {}).get(month_key) or {}).get(hospital_id) or {}

    entries = []
    for shift_id, dates in hospital_month.items():
        for date_key, assignments in dates.items():
            if not date_key.startswith(month_key):
                continue
            for a in assignments:
                if a.get("doctor_id") != doctor_id and a.get("name") != doctor["name"]:
                    continue
                entry, exit_ = parse_entry_times(a.get("time"))
                entries.append({
                    "id": f"entry-{uuid.uuid4().hex[:12]}",
                    "date": date_key,
                    "entry1": entry,
                    "exit1": exit_,
                    "total_hours": hours_between(entry, exit_),
                    "value": a.get("value") or 0,
                    "description": shift_names.get(shift_id) or "Plantão",
                })
    entries.sort(key=lambda e: e["date"])

    company = {**DEFAULT_COMPANY, **(store.get("company_settings") or {})}
    return {
        "id": f"ts-{uuid.uuid4().hex[:12]}",
        "doctor_id": doctor["id"],
        "doctor_name": doctor.get("full_name") or doctor["name"],
        "doctor_crm": doctor.get("crm") or "",
        "doctor_specialty": doctor.get("specialty") or "",
        "hospital_id": hospital["id"],
        "hospital_name": hospital["name"],
        "month": month_key,
        "company_name": company["name"],
        "company_cnpj": company["cnpj"],
        "entries": entries,
        "total_value": sum(e["value"] for e in entries),
        "created_at": int(time.time() * 1000),
        "status": TIMESHEET_DRAFT,
    }


def save_timesheet(store: dict, timesheet: dict) -> dict:
    """Replace the timesheet with the same id, or put a new one first."""
    timesheet = {**timesheet, "total_value": sum(e.get("value") or 0 for e in timesheet.get("entries", []))}
    existing = list(store.get("timesheets") or [])
    for i, ts in enumerate(existing):
        if ts["id"] == timesheet["id"]:
            existing[i] = timesheet
            break
    else:
        existing.insert(0, timesheet)
    return {**store, "timesheets": existing}


def delete_timesheet(store: dict, timesheet_id: str) -> dict:
    _find(store.get("timesheets") or [], timesheet_id, "Timesheet")
    return {**store, "timesheets": [t for t in store["timesheets"] if t["id"] != timesheet_id]}


def finalize_timesheet(store: dict, timesheet_id: str) -> dict:
    timesheet = _find(store.get("timesheets") or [], timesheet_id, "Timesheet")
    return save_timesheet(store, {**timesheet, "status": TIMESHEET_FINALIZED})


def filter_timesheets(
    timesheets: List[dict], doctor_id: Optional[str] = None, month_key: Optional[str] = None,
) -> List[dict]:
    return [
        t for t in timesheets or []
        if (not doctor_id or t["doctor_id"] == doctor_id)
        and (not month_key or t["month"] == month_key)
    ]
