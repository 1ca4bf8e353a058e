"""Change log of schedule edits and reverting a single change."""
from typing import Optional

from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_store, get_store_sync, require_roles
from escala import history
from escala.models import ROLE_ADMIN
from store_sync import StoreSync

router = APIRouter()

admins = require_roles(ROLE_ADMIN)


@router.get("/")
def list_history(
    limit: int = 100,
    action: Optional[str] = None,
    location_id: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(admins),
):
    entries = store.get("history") or []
    if action:
        entries = [e for e in entries if e.get("action") == action]
    if location_id:
        entries = [e for e in entries if e.get("location_id") == location_id]
    return entries[:limit]


@router.post("/{entry_id}/revert")
def revert_entry(
    entry_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        entry = history.find_entry(store, entry_id)
        store = history.revert_history_entry(entry, store)
    commit(sync, store)
    return {"ok": True, "reverted": entry["action"]}
