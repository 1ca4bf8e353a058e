"""Save status of the shared store and change polling."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from deps import get_current_user, get_store_sync
from store_sync import StoreSync

router = APIRouter()


@router.get("/status")
def sync_status(sync: StoreSync = Depends(get_store_sync), user: dict = Depends(get_current_user)):
    return sync.state()


@router.post("/pull")
def pull_changes(
    since: Optional[str] = None,
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(get_current_user),
):
    """
    The stored store when its revision differs from `since`, the revision the
    client saw last. Clients keep the returned revision for the next call.
    """
    try:
        store, revision = sync.changes_since(since)
    except SQLAlchemyError as e:
        raise HTTPException(503, f"Store unavailable: {e}")
    return {"changed": store is not None, "store": store, "revision": revision}
