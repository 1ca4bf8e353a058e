"""
Store projection and editing.

Every operation takes a store dict and returns a new one; the input is never
modified. Template buckets are keyed by the day index as a string ("0" =
Monday), month buckets by date key. A month also holds the padding days of
the weeks it spans.
"""

import copy
import logging
import uuid
from typing import Dict, Iterator, List, Optional, Tuple

from .dates import DAY_NAMES, get_weeks_for_month, parse_date_key, parse_month_key, template_day_index
from .financial import calculate_assignment_value, default_period_and_time, find_doctor
from .history import add_history_entry, cell_list, create_history_entry
from .models import (
    ACTION_CREATE, ACTION_DELETE, ACTION_EDIT, ACTION_MOVE, ASSIGNMENT_FIELDS,
    DEFAULT_COMPANY, DOCTOR_DIF, DOCTOR_NORMAL, DOCTOR_TYPES, ROLE_ADMIN,
    ROLE_ASSISTANT, ROLES, THEMES, CellRef, WeekDate,
)
from .notifications import initialize_notification_settings
from .seed_data import SCHEDULE_DATA, default_financial_rules

logger = logging.getLogger(__name__)

START_MONTH = "2026-01"
DEFAULT_SHIFT_NAME = "Plantão"
PROTECTED_USERNAME = "admin"

DOCTOR_FIELDS = (
    "full_name", "nickname", "crm", "specialty", "email", "phone_number",
    "receive_notifications",
)
LOCATION_FIELDS = ("name", "nickname", "logo", "theme")
COMPANY_FIELDS = ("name", "cnpj", "logo1", "logo2")

FILL_EMPTY = "fill_empty"
OVERWRITE = "overwrite"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def new_assignment_id() -> str:
    return _new_id("asg")


def clone_assignments(assignments: Optional[List[dict]], fresh_ids: bool = False) -> List[dict]:
    """Deep copy; with fresh_ids every copy gets its own assignment id."""
    cloned = copy.deepcopy(list(assignments or []))
    if fresh_ids:
        for a in cloned:
            a["id"] = new_assignment_id()
    return cloned


def iter_assignments(store: dict) -> Iterator[dict]:
    """Every assignment of every month and of the template."""
    for month in (store.get("months") or {}).values():
        for shifts in month.values():
            for days in shifts.values():
                for assignments in days.values():
                    yield from assignments
    for shifts in (store.get("template") or {}).values():
        for days in shifts.values():
            for assignments in days.values():
                yield from assignments


# --- legacy data -------------------------------------------------------------

def extract_doctors_from_legacy(locations: List[dict]) -> List[dict]:
    names = set()
    for loc in locations:
        for shift in loc.get("shifts", []):
            for day in shift.get("schedule", []):
                for a in day.get("assignments", []):
                    name = (a.get("name") or "").strip()
                    if name:
                        names.add(name)
    return [
        {"id": f"doc-init-{i}", "name": name, "type": DOCTOR_NORMAL}
        for i, name in enumerate(sorted(names))
    ]


def repair_store_doctors(store: dict) -> dict:
    """Stores saved before doctors were tracked get the legacy roster."""
    if store.get("doctors"):
        return store
    logger.info("Store has no doctors, rebuilding roster from legacy data")
    return {**store, "doctors": extract_doctors_from_legacy(SCHEDULE_DATA)}


def extract_template_from_legacy(locations: List[dict]) -> Tuple[List[dict], Dict]:
    """Split legacy hospitals into a bare structure and a day-of-week template."""
    structure = []
    template: Dict[str, dict] = {}
    for loc in locations:
        structure.append({
            **{k: v for k, v in loc.items() if k != "shifts"},
            "shifts": [{"id": s["id"], "name": s["name"]} for s in loc.get("shifts", [])],
        })
        template[loc["id"]] = {}
        for shift in loc.get("shifts", []):
            days = {}
            for day in shift.get("schedule", []):
                if day.get("assignments"):
                    days[str(day["day_index"])] = clone_assignments(day["assignments"], fresh_ids=True)
            template[loc["id"]][shift["id"]] = days
    return structure, template


def _link_doctor_ids(store: dict) -> None:
    by_name = {d["name"]: d["id"] for d in store.get("doctors") or []}
    for a in iter_assignments(store):
        if not a.get("doctor_id") and a.get("name") in by_name:
            a["doctor_id"] = by_name[a["name"]]


def initialize_store() -> dict:
    structure, template = extract_template_from_legacy(SCHEDULE_DATA)
    store = {
        "structure": structure,
        "template": template,
        "months": {START_MONTH: {}},
        "doctors": extract_doctors_from_legacy(SCHEDULE_DATA),
        "financial_rules": default_financial_rules(),
        "users": [],
        "history": [],
        "notification_logs": [],
        "notification_settings": initialize_notification_settings(),
        "timesheets": [],
        "company_settings": dict(DEFAULT_COMPANY),
    }
    _link_doctor_ids(store)
    return store


# --- projection --------------------------------------------------------------

def create_month_from_template(
    month_key: str,
    template: dict,
    existing: Optional[dict] = None,
    only_fill_empty: bool = True,
) -> dict:
    """
    Project the template onto every day of the month grid, padding days
    included. A slot is written only when `only_fill_empty` is false or the
    slot is empty; an empty template bucket never clears a slot.
    """
    month = copy.deepcopy(existing) if existing else {}
    days = [d for week in get_weeks_for_month(month_key) for d in week]

    for loc_id, shifts in (template or {}).items():
        loc_month = month.setdefault(loc_id, {})
        for shift_id, buckets in shifts.items():
            shift_month = loc_month.setdefault(shift_id, {})
            for day in days:
                source = buckets.get(str(template_day_index(parse_date_key(day.date_key))))
                if not source:
                    continue
                if only_fill_empty and shift_month.get(day.date_key):
                    continue
                shift_month[day.date_key] = clone_assignments(source, fresh_ids=True)
    return month


def get_week_view_data(structure: List[dict], month_data: Optional[dict], week: List[WeekDate]) -> List[dict]:
    month_data = month_data or {}
    view = []
    for loc in structure:
        shifts = []
        for shift in loc.get("shifts", []):
            cells = (month_data.get(loc["id"]) or {}).get(shift["id"]) or {}
            shifts.append({
                **shift,
                "schedule": [
                    {
                        "day_index": i,
                        "day_name": day.day_name,
                        "date": day.date,
                        "date_key": day.date_key,
                        "is_out_of_month": day.is_out_of_month,
                        "assignments": clone_assignments(cells.get(day.date_key)),
                    }
                    for i, day in enumerate(week)
                ],
            })
        view.append({**loc, "shifts": shifts})
    return view


def get_template_view_data(structure: List[dict], template: Optional[dict]) -> List[dict]:
    template = template or {}
    view = []
    for loc in structure:
        shifts = []
        for shift in loc.get("shifts", []):
            buckets = (template.get(loc["id"]) or {}).get(shift["id"]) or {}
            shifts.append({
                **shift,
                "schedule": [
                    {
                        "day_index": i,
                        "day_name": DAY_NAMES[i],
                        "date_key": f"template-{i}",
                        "is_out_of_month": False,
                        "assignments": clone_assignments(buckets.get(str(i))),
                    }
                    for i in range(7)
                ],
            })
        view.append({**loc, "shifts": shifts})
    return view


def apply_doctor_filter(view: List[dict], doctor_name: str) -> List[dict]:
    """Keep only `doctor_name`'s assignments, dropping shifts and hospitals left empty."""
    filtered = []
    for loc in view:
        shifts = []
        for shift in loc["shifts"]:
            schedule = [
                {**day, "assignments": [a for a in day["assignments"] if a.get("name") == doctor_name]}
                for day in shift["schedule"]
            ]
            if any(day["assignments"] for day in schedule):
                shifts.append({**shift, "schedule": schedule})
        if shifts:
            filtered.append({**loc, "shifts": shifts})
    return filtered


# --- months ------------------------------------------------------------------

def create_month(store: dict, month_key: str) -> dict:
    parse_month_key(month_key)
    if month_key in (store.get("months") or {}):
        return store
    months = dict(store.get("months") or {})
    months[month_key] = create_month_from_template(month_key, store.get("template"))
    logger.info("Created month %s from template", month_key)
    return {**store, "months": months}


def delete_month(store: dict, month_key: str) -> dict:
    months = dict(store.get("months") or {})
    if month_key not in months:
        raise LookupError(f"Month {month_key} not found")
    del months[month_key]
    return {**store, "months": months}


def apply_template(store: dict, month_keys: List[str], mode: str = FILL_EMPTY) -> dict:
    if mode not in (FILL_EMPTY, OVERWRITE):
        raise ValueError(f"Unknown template mode: {mode}")
    overwrite = mode == OVERWRITE
    months = dict(store.get("months") or {})
    for month_key in month_keys:
        parse_month_key(month_key)
        existing = None if overwrite else months.get(month_key)
        months[month_key] = create_month_from_template(
            month_key, store.get("template"), existing, only_fill_empty=not overwrite,
        )
    logger.info("Applied template (%s) to %s", mode, ", ".join(month_keys))
    return {**store, "months": months}


# --- assignments -------------------------------------------------------------

def find_location(store: dict, location_id: str) -> dict:
    for loc in store.get("structure") or []:
        if loc["id"] == location_id:
            return loc
    raise LookupError(f"Hospital {location_id} not found")


def find_shift(store: dict, location_id: str, shift_id: str) -> Tuple[dict, dict]:
    loc = find_location(store, location_id)
    for shift in loc.get("shifts", []):
        if shift["id"] == shift_id:
            return loc, shift
    raise LookupError(f"Shift {shift_id} not found in {loc['name']}")


def _assignment_at(assignments: Optional[List[dict]], index: int) -> dict:
    if not assignments or not 0 <= index < len(assignments):
        raise LookupError(f"No assignment at position {index}")
    return assignments[index]


def save_assignment(
    store: dict,
    cell: CellRef,
    data: dict,
    user: Optional[dict] = None,
    index: Optional[int] = None,
) -> dict:
    """
    Create (index None) or replace the assignment at `index` in a cell.
    Missing period, time and value are filled from the financial rules.
    An Assistente may edit but not create, and cannot change the doctor.
    """
    loc, shift = find_shift(store, cell.location_id, cell.shift_id)
    role = (user or {}).get("role")
    if role == ROLE_ASSISTANT and index is None:
        raise PermissionError("Assistente cannot create assignments")

    new_store = copy.deepcopy(store)
    assignments = cell_list(new_store, cell)
    before = None
    if index is not None:
        before = copy.deepcopy(_assignment_at(assignments, index))

    assignment = {k: v for k, v in data.items() if k in ASSIGNMENT_FIELDS and v is not None}
    if before is not None:
        assignment.setdefault("id", before.get("id"))
        if role == ROLE_ASSISTANT:
            assignment["name"] = before.get("name")
    if not (assignment.get("name") or "").strip():
        raise ValueError("Assignment needs a doctor name")

    if not assignment.get("period") and not assignment.get("time"):
        period, time_text = default_period_and_time(store, loc["id"], shift["id"])
        if period:
            assignment["period"] = period
        if time_text:
            assignment["time"] = time_text
    if "value" not in assignment:
        value = calculate_assignment_value(
            store, assignment["name"], loc["id"], assignment.get("period") or shift["name"],
        )
        assignment["value"] = value if value is not None else 0

    doctor = find_doctor(store, assignment["name"])
    if doctor:
        assignment["doctor_id"] = doctor["id"]
    if not assignment.get("id"):
        assignment["id"] = new_assignment_id()

    if index is None:
        assignments.append(assignment)
    else:
        assignments[index] = assignment

    entry = create_history_entry(
        ACTION_EDIT if before else ACTION_CREATE, user, cell, loc["name"], shift["name"],
        before=before, after=assignment,
    )
    return add_history_entry(new_store, entry)


def delete_assignment(store: dict, cell: CellRef, index: int, user: Optional[dict] = None) -> dict:
    loc, shift = find_shift(store, cell.location_id, cell.shift_id)
    new_store = copy.deepcopy(store)
    assignments = cell_list(new_store, cell, create=False)
    _assignment_at(assignments, index)
    removed = assignments.pop(index)
    entry = create_history_entry(ACTION_DELETE, user, cell, loc["name"], shift["name"], before=removed)
    return add_history_entry(new_store, entry)


def move_assignment(
    store: dict, source: CellRef, index: int, target: CellRef, user: Optional[dict] = None,
) -> dict:
    """Take the assignment out of `source` and append it to `target`."""
    if source.is_template != target.is_template:
        raise ValueError("Cannot move between the template and a month")
    loc, shift = find_shift(store, source.location_id, source.shift_id)
    find_shift(store, target.location_id, target.shift_id)

    new_store = copy.deepcopy(store)
    source_list = cell_list(new_store, source, create=False)
    _assignment_at(source_list, index)
    moved = source_list.pop(index)
    if not moved.get("id"):
        moved["id"] = new_assignment_id()
    cell_list(new_store, target).append(moved)

    entry = create_history_entry(
        ACTION_MOVE, user, source, loc["name"], shift["name"],
        before=moved, after=moved, target=target,
    )
    return add_history_entry(new_store, entry)


# --- doctors -----------------------------------------------------------------

def _doctor_index(store: dict, doctor_id: str) -> int:
    for i, d in enumerate(store.get("doctors") or []):
        if d["id"] == doctor_id:
            return i
    raise LookupError(f"Doctor {doctor_id} not found")


def get_doctor(store: dict, doctor_id: str) -> dict:
    return store["doctors"][_doctor_index(store, doctor_id)]


def _replace_doctor(store: dict, doctor_id: str, **changes) -> dict:
    doctors = list(store.get("doctors") or [])
    i = _doctor_index(store, doctor_id)
    doctors[i] = {**doctors[i], **changes}
    return {**store, "doctors": doctors}


def add_doctor(store: dict, name: str, doctor_type: str = DOCTOR_NORMAL, **fields) -> dict:
    name = (name or "").strip()
    if not name:
        raise ValueError("Doctor needs a name")
    if doctor_type not in DOCTOR_TYPES:
        raise ValueError(f"Unknown doctor type: {doctor_type}")
    unknown = set(fields) - set(DOCTOR_FIELDS)
    if unknown:
        raise ValueError(f"Unknown doctor fields: {', '.join(sorted(unknown))}")
    doctor = {"id": _new_id("doc"), "name": name, "type": doctor_type}
    doctor.update({k: v for k, v in fields.items() if v is not None})
    return {**store, "doctors": list(store.get("doctors") or []) + [doctor]}


def remove_doctor(store: dict, doctor_id: str) -> dict:
    """Drops the doctor from the roster; assignments already made keep the name."""
    _doctor_index(store, doctor_id)
    return {**store, "doctors": [d for d in store["doctors"] if d["id"] != doctor_id]}


def toggle_doctor_type(store: dict, doctor_id: str) -> dict:
    doctor = store["doctors"][_doctor_index(store, doctor_id)]
    new_type = DOCTOR_DIF if doctor.get("type") == DOCTOR_NORMAL else DOCTOR_NORMAL
    return _replace_doctor(store, doctor_id, type=new_type)


def rename_doctor(store: dict, doctor_id: str, new_name: str) -> dict:
    """Rename the doctor and every month and template assignment carrying the old name."""
    new_name = (new_name or "").strip()
    if not new_name:
        raise ValueError("Doctor needs a name")
    new_store = copy.deepcopy(store)
    doctor = new_store["doctors"][_doctor_index(store, doctor_id)]
    old_name = doctor["name"]
    doctor["name"] = new_name

    renamed = 0
    for a in iter_assignments(new_store):
        if a.get("doctor_id") == doctor_id or (not a.get("doctor_id") and a.get("name") == old_name):
            a["name"] = new_name
            renamed += 1
    logger.info("Renamed doctor %s to %s (%d assignments)", old_name, new_name, renamed)
    return new_store


def update_doctor(store: dict, doctor_id: str, **fields) -> dict:
    unknown = set(fields) - set(DOCTOR_FIELDS)
    if unknown:
        raise ValueError(f"Unknown doctor fields: {', '.join(sorted(unknown))}")
    return _replace_doctor(store, doctor_id, **fields)


# --- structure ---------------------------------------------------------------

def add_location(store: dict, name: str, nickname: str = "", logo: str = "", theme: str = "slate") -> dict:
    if not (name or "").strip():
        raise ValueError("Hospital needs a name")
    if theme not in THEMES:
        raise ValueError(f"Unknown theme: {theme}")
    location = {
        "id": _new_id("loc"),
        "name": name.strip(),
        "nickname": nickname,
        "logo": logo,
        "theme": theme,
        "shifts": [{"id": _new_id("shift"), "name": DEFAULT_SHIFT_NAME}],
    }
    return {**store, "structure": list(store.get("structure") or []) + [location]}


def update_location(store: dict, location_id: str, **fields) -> dict:
    """Edit hospital fields; a rename carries over to the financial rules."""
    unknown = set(fields) - set(LOCATION_FIELDS)
    if unknown:
        raise ValueError(f"Unknown hospital fields: {', '.join(sorted(unknown))}")
    if "name" in fields and not (fields["name"] or "").strip():
        raise ValueError("Hospital needs a name")
    if fields.get("theme") is not None and fields["theme"] not in THEMES:
        raise ValueError(f"Unknown theme: {fields['theme']}")

    new_store = copy.deepcopy(store)
    loc = find_location(new_store, location_id)
    old_name = loc["name"]
    loc.update({k: v for k, v in fields.items() if v is not None})
    if loc["name"] != old_name:
        for rule in new_store.get("financial_rules") or []:
            if rule["hospital_name"] == old_name:
                rule["hospital_name"] = loc["name"]
    return new_store


def delete_location(store: dict, location_id: str) -> dict:
    """Removes the hospital from the structure; its assignment data is left in place."""
    find_location(store, location_id)
    return {**store, "structure": [l for l in store["structure"] if l["id"] != location_id]}


def add_shift(store: dict, location_id: str, name: str) -> dict:
    if not (name or "").strip():
        raise ValueError("Shift needs a name")
    new_store = copy.deepcopy(store)
    find_location(new_store, location_id)["shifts"].append({"id": _new_id("shift"), "name": name.strip()})
    return new_store


def rename_shift(store: dict, location_id: str, shift_id: str, name: str) -> dict:
    if not (name or "").strip():
        raise ValueError("Shift needs a name")
    new_store = copy.deepcopy(store)
    _, shift = find_shift(new_store, location_id, shift_id)
    shift["name"] = name.strip()
    return new_store


def delete_shift(store: dict, location_id: str, shift_id: str) -> dict:
    new_store = copy.deepcopy(store)
    loc, _ = find_shift(new_store, location_id, shift_id)
    loc["shifts"] = [s for s in loc["shifts"] if s["id"] != shift_id]
    return new_store


# --- users and settings ------------------------------------------------------

def add_user(
    store: dict, username: str, password: str, name: str, role: str,
    linked_doctor_id: Optional[str] = None,
) -> dict:
    if not username or not password or not name or not role:
        raise ValueError("User needs username, password, name and role")
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    if any(u["username"] == username for u in store.get("users") or []):
        raise ValueError(f"User {username} already exists")
    if linked_doctor_id:
        _doctor_index(store, linked_doctor_id)
    user = {
        "id": _new_id("user"),
        "username": username,
        "password": password,
        "name": name,
        "role": role,
        "linked_doctor_id": linked_doctor_id,
    }
    return {**store, "users": list(store.get("users") or []) + [user]}


def remove_user(store: dict, username: str) -> dict:
    if username == PROTECTED_USERNAME:
        raise PermissionError("The administrator cannot be removed")
    users = [u for u in store.get("users") or [] if u["username"] != username]
    if len(users) == len(store.get("users") or []):
        raise LookupError(f"User {username} not found")
    return {**store, "users": users}


def update_company_settings(store: dict, **fields) -> dict:
    unknown = set(fields) - set(COMPANY_FIELDS)
    if unknown:
        raise ValueError(f"Unknown company fields: {', '.join(sorted(unknown))}")
    company = {**DEFAULT_COMPANY, **(store.get("company_settings") or {})}
    company.update({k: v for k, v in fields.items() if v is not None})
    return {**store, "company_settings": company}


def is_admin_or_assistant(user: Optional[dict]) -> bool:
    return (user or {}).get("role") in (ROLE_ADMIN, ROLE_ASSISTANT)
