"""Financial rules: price per hospital, shift and doctor type."""
from fastapi import APIRouter, Depends

from deps import commit, domain_errors, get_store, get_store_sync, require_roles
from escala import financial
from escala.models import ROLE_ADMIN
from schemas import RuleCreate, RuleUpdate
from store_sync import StoreSync

router = APIRouter()

admins = require_roles(ROLE_ADMIN)


@router.get("/")
def list_rules(hospital_name: str = None, store: dict = Depends(get_store), user: dict = Depends(admins)):
    rules = store.get("financial_rules") or []
    if hospital_name:
        rules = [r for r in rules if r["hospital_name"] == hospital_name]
    return rules


@router.post("/")
def create_rule(
    data: RuleCreate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = financial.add_rule(store, data.hospital_name, data.shift_name, data.value, data.is_dif)
    commit(sync, store)
    return store["financial_rules"][-1]


@router.put("/{rule_id}")
def update_rule(
    rule_id: str,
    data: RuleUpdate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = financial.update_rule_value(store, rule_id, data.value)
    commit(sync, store)
    return next(r for r in store["financial_rules"] if r["id"] == rule_id)


@router.delete("/{rule_id}")
def delete_rule(
    rule_id: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = financial.remove_rule(store, rule_id)
    commit(sync, store)
    return {"ok": True}
