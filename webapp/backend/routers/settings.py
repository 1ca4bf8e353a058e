"""Company settings printed on timesheets."""
from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_current_user, get_store, get_store_sync, require_roles
from escala import schedule_manager as sm
from escala.models import DEFAULT_COMPANY, ROLE_ADMIN
from schemas import CompanySettingsUpdate
from store_sync import StoreSync

router = APIRouter()


@router.get("/company")
def get_company(store: dict = Depends(get_store), user: dict = Depends(get_current_user)):
    return {**DEFAULT_COMPANY, **(store.get("company_settings") or {})}


@router.put("/company")
def update_company(
    data: CompanySettingsUpdate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(require_roles(ROLE_ADMIN)),
):
    with domain_errors():
        store = sm.update_company_settings(store, **data.model_dump(exclude_unset=True))
    commit(sync, store)
    return store["company_settings"]
