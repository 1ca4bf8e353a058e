"""Create, edit, delete and move assignments in month cells or template cells."""
from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_store, get_store_sync, require_roles
from escala import notifications
from escala import schedule_manager as sm
from escala.history import cell_list
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, CellRef
from schemas import AssignmentDelete, AssignmentSave, MoveRequest
from store_sync import StoreSync

router = APIRouter()

editors = require_roles(ROLE_ADMIN, ROLE_ASSISTANT)


def _notify(store: dict, action: str, user: dict, cell: CellRef, assignment: dict) -> dict:
    if cell.is_template:
        return store
    loc, shift = sm.find_shift(store, cell.location_id, cell.shift_id)
    return notifications.send_change_notification(
        store, action, user.get("name") or "Sistema", assignment.get("name", ""),
        loc["name"], shift["name"], cell.date_key, assignment.get("note"),
    )


def _cell_contents(store: dict, cell: CellRef) -> list:
    return cell_list(store, cell, create=False) or []


@router.post("/")
def save_assignment(
    data: AssignmentSave,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(editors),
):
    """No index creates an assignment; an index replaces the assignment at that position."""
    with domain_errors():
        cell = data.to_cell()
        fields = data.assignment.model_dump(exclude_none=True)
        store = sm.save_assignment(store, cell, fields, user=user, index=data.index)

        entry = store["history"][0]
        saved, before = entry["after"], entry["before"]
        if saved.get("is_flagged") and not (before or {}).get("is_flagged"):
            action = "flag"
        else:
            action = "create" if data.index is None else "edit"
        store = _notify(store, action, user, cell, saved)
    commit(sync, store)
    return {"assignment": saved, "cell": _cell_contents(store, cell)}


@router.delete("/")
def delete_assignment(
    data: AssignmentDelete,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(editors),
):
    with domain_errors():
        cell = data.to_cell()
        store = sm.delete_assignment(store, cell, data.index, user=user)
        store = _notify(store, "delete", user, cell, store["history"][0]["before"])
    commit(sync, store)
    return {"ok": True, "cell": _cell_contents(store, cell)}


@router.post("/move")
def move_assignment(
    data: MoveRequest,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(editors),
):
    with domain_errors():
        source, target = data.source.to_cell(), data.target.to_cell()
        store = sm.move_assignment(store, source, data.index, target, user=user)
    commit(sync, store)
    return {
        "ok": True,
        "source": _cell_contents(store, source),
        "target": _cell_contents(store, target),
    }
