"""Doctor roster."""
from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_current_user, get_store, get_store_sync, require_roles
from escala import schedule_manager as sm
from escala.models import ROLE_ADMIN
from schemas import DoctorCreate, DoctorUpdate
from store_sync import StoreSync

router = APIRouter()

admins = require_roles(ROLE_ADMIN)


@router.get("/")
def list_doctors(store: dict = Depends(get_store), user: dict = Depends(get_current_user)):
    return sorted(store.get("doctors") or [], key=lambda d: d["name"])


@router.post("/")
def create_doctor(
    data: DoctorCreate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    fields = data.model_dump(exclude_none=True, exclude={"name", "type"})
    with domain_errors():
        store = sm.add_doctor(store, data.name, data.type, **fields)
    commit(sync, store)
    return store["doctors"][-1]


@router.put("/{doctor_id}")
def update_doctor(
    doctor_id: str,
    data: DoctorUpdate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    """A new name is carried to every assignment of the doctor."""
    fields = data.model_dump(exclude_unset=True)
    new_name = fields.pop("name", None)
    with domain_errors():
        sm.get_doctor(store, doctor_id)
        if new_name is not None:
            store = sm.rename_doctor(store, doctor_id, new_name)
        if fields:
            store = sm.update_doctor(store, doctor_id, **fields)
    commit(sync, store)
    return sm.get_doctor(store, doctor_id)


@router.post("/{doctor_id}/toggle-type")
def toggle_type(
    doctor_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = sm.toggle_doctor_type(store, doctor_id)
    commit(sync, store)
    return sm.get_doctor(store, doctor_id)


@router.delete("/{doctor_id}")
def delete_doctor(
    doctor_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = sm.remove_doctor(store, doctor_id)
    commit(sync, store)
    return {"ok": True}
