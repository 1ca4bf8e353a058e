"""
Change log for schedule edits and the revert of a single entry.

Entries record the cell context, the assignment before and after the change
and, for moves, the target cell. Assignments are located by their stable
`id`; entries written before assignments had ids fall back to matching the
doctor name, time and period.
"""

import copy
import logging
import time
import uuid
from typing import Dict, List, Optional

from .models import (
    ACTION_CREATE, ACTION_DELETE, ACTION_EDIT, ACTION_MOVE, CHANGE_ACTIONS,
    MAX_HISTORY_ENTRIES, ROLE_ADMIN, CellRef,
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def create_history_entry(
    action: str,
    user: Optional[dict],
    cell: CellRef,
    location_name: str,
    shift_name: str,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
    target: Optional[CellRef] = None,
) -> dict:
    if action not in CHANGE_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")
    entry = {
        "id": f"history-{uuid.uuid4().hex[:12]}",
        "timestamp": now_ms(),
        "user_id": (user or {}).get("id"),
        "user_name": (user or {}).get("name") or "Sistema",
        "user_role": (user or {}).get("role") or ROLE_ADMIN,
        "action": action,
        "location_id": cell.location_id,
        "location_name": location_name,
        "shift_id": cell.shift_id,
        "shift_name": shift_name,
        "date_key": cell.date_key,
        "month_key": cell.month_key,
        "day_index": cell.day_index,
        "is_template": cell.is_template,
        "before": copy.deepcopy(before),
        "after": copy.deepcopy(after),
    }
    if target is not None:
        entry.update({
            "target_location_id": target.location_id,
            "target_shift_id": target.shift_id,
            "target_date_key": target.date_key,
            "target_month_key": target.month_key,
            "target_day_index": target.day_index,
        })
    return entry


def add_history_entry(store: dict, entry: dict) -> dict:
    """Return a store with `entry` prepended; only the newest entries are kept."""
    history = [entry] + list(store.get("history") or [])
    return {**store, "history": history[:MAX_HISTORY_ENTRIES]}


def cell_list(store: dict, cell: CellRef, create: bool = True) -> Optional[List[dict]]:
    """The assignment list behind a cell, creating empty levels when asked."""
    if cell.is_template:
        root = store.setdefault("template", {}) if create else store.get("template", {})
        key = str(cell.day_index)
    else:
        months = store.setdefault("months", {}) if create else store.get("months", {})
        root = months.setdefault(cell.month_key, {}) if create else months.get(cell.month_key)
        key = cell.date_key
    if root is None:
        return None
    if not create:
        return ((root.get(cell.location_id) or {}).get(cell.shift_id) or {}).get(key)
    return root.setdefault(cell.location_id, {}).setdefault(cell.shift_id, {}).setdefault(key, [])


def _find(assignments: List[dict], wanted: Optional[dict], loose: bool = False) -> int:
    if not wanted:
        return -1
    if wanted.get("id"):
        for i, a in enumerate(assignments):
            if a.get("id") == wanted["id"]:
                return i
        return -1
    for i, a in enumerate(assignments):
        same_slot = a.get("time") == wanted.get("time") and a.get("period") == wanted.get("period")
        if loose:
            if a.get("name") == wanted.get("name") or same_slot:
                return i
        elif a.get("name") == wanted.get("name") and same_slot:
            return i
    return -1


def _entry_cell(entry: dict, target: bool = False) -> CellRef:
    prefix = "target_" if target else ""
    if entry.get("is_template"):
        day_index = entry.get(f"{prefix}day_index")
        if day_index is None:
            raise ValueError("Template history entry without day index")
        return CellRef(entry.get(f"{prefix}location_id") or entry["location_id"],
                       entry.get(f"{prefix}shift_id") or entry["shift_id"],
                       day_index=int(day_index))
    date_key = entry.get(f"{prefix}date_key")
    if not date_key:
        raise ValueError("Month history entry without date key")
    return CellRef(entry.get(f"{prefix}location_id") or entry["location_id"],
                   entry.get(f"{prefix}shift_id") or entry["shift_id"],
                   date_key=date_key,
                   month=entry.get(f"{prefix}month_key") or entry.get("month_key"))


def revert_history_entry(entry: dict, store: dict) -> dict:
    """
    Undo one change and return the new store (the input is not modified).
    Raises LookupError when the changed assignment is no longer in place.
    """
    new_store = copy.deepcopy(store)
    action = entry.get("action")
    before, after = entry.get("before"), entry.get("after")
    assignments = cell_list(new_store, _entry_cell(entry))

    if action == ACTION_CREATE:
        idx = _find(assignments, after)
        if idx == -1:
            raise LookupError("Created assignment no longer exists")
        assignments.pop(idx)
    elif action == ACTION_DELETE:
        if before:
            assignments.append(copy.deepcopy(before))
    elif action == ACTION_EDIT:
        idx = _find(assignments, after, loose=True)
        if idx == -1 or not before:
            raise LookupError("Edited assignment no longer exists")
        assignments[idx] = copy.deepcopy(before)
    elif action == ACTION_MOVE:
        moved = after or before
        target_list = cell_list(new_store, _entry_cell(entry, target=True))
        idx = _find(target_list, moved)
        if idx == -1:
            raise LookupError("Moved assignment no longer exists at its target")
        assignments.append(target_list.pop(idx))
    else:
        raise ValueError(f"Unknown history action: {action}")

    logger.info("Reverted %s on %s/%s", action, entry.get("location_name"), entry.get("shift_name"))
    return new_store


def find_entry(store: dict, entry_id: str) -> Dict:
    for entry in store.get("history") or []:
        if entry.get("id") == entry_id:
            return entry
    raise LookupError(f"History entry {entry_id} not found")
