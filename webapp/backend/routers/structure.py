"""Hospitals and their shifts."""
from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_store, get_store_sync, require_roles
from escala import schedule_manager as sm
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT
from schemas import LocationCreate, LocationUpdate, ShiftIn
from store_sync import StoreSync

router = APIRouter()

managers = require_roles(ROLE_ADMIN, ROLE_ASSISTANT)


@router.get("/")
def list_locations(store: dict = Depends(get_store)):
    return store.get("structure") or []


@router.post("/")
def create_location(
    data: LocationCreate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.add_location(store, data.name, data.nickname, data.logo, data.theme)
    commit(sync, store)
    return store["structure"][-1]


@router.put("/{location_id}")
def update_location(
    location_id: str,
    data: LocationUpdate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.update_location(store, location_id, **data.model_dump(exclude_unset=True))
        commit(sync, store)
        return sm.find_location(store, location_id)


@router.delete("/{location_id}")
def delete_location(
    location_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.delete_location(store, location_id)
    commit(sync, store)
    return {"ok": True}


@router.post("/{location_id}/shifts")
def create_shift(
    location_id: str,
    data: ShiftIn,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.add_shift(store, location_id, data.name)
        commit(sync, store)
        return sm.find_location(store, location_id)["shifts"][-1]


@router.put("/{location_id}/shifts/{shift_id}")
def rename_shift(
    location_id: str,
    shift_id: str,
    data: ShiftIn,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.rename_shift(store, location_id, shift_id, data.name)
        commit(sync, store)
        return sm.find_shift(store, location_id, shift_id)[1]


@router.delete("/{location_id}/shifts/{shift_id}")
def delete_shift(
    location_id: str,
    shift_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(managers),
):
    with domain_errors():
        store = sm.delete_shift(store, location_id, shift_id)
    commit(sync, store)
    return {"ok": True}
