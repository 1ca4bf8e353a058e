"""Local users (stored in the schedule store) and registered user profiles."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from deps import commit, domain_errors, get_current_user, get_store, get_store_sync, require_roles
from escala import schedule_manager as sm
from escala.models import ROLE_ADMIN, ROLES
from models import UserProfile
from schemas import ProfileCreate, ProfileOut, ProfileUpdate, UserCreate
from store_sync import MAX_USERS_PER_PAGE, StoreSync
import claims

router = APIRouter()

admins = require_roles(ROLE_ADMIN)


def _public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password"}


@router.get("/me")
def whoami(user: dict = Depends(get_current_user)):
    return _public(user)


@router.get("/")
def list_users(store: dict = Depends(get_store), user: dict = Depends(admins)):
    return [_public(u) for u in store.get("users") or []]


@router.post("/")
def create_user(
    data: UserCreate,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = sm.add_user(store, data.username, data.password, data.name, data.role, data.linked_doctor_id)
    commit(sync, store)
    return _public(store["users"][-1])


@router.delete("/{username}")
def delete_user(
    username: str,
    store: dict = Depends(get_store),
    sync: StoreSync = Depends(get_store_sync),
    user: dict = Depends(admins),
):
    with domain_errors():
        store = sm.remove_user(store, username)
    commit(sync, store)
    return {"ok": True}


@router.get("/profiles", response_model=List[ProfileOut])
def list_profiles(db: Session = Depends(get_db), user: dict = Depends(admins)):
    return db.query(UserProfile).order_by(UserProfile.name).limit(MAX_USERS_PER_PAGE).all()


@router.post("/profiles", response_model=ProfileOut)
def create_profile(data: ProfileCreate, db: Session = Depends(get_db), user: dict = Depends(admins)):
    if data.role not in ROLES:
        raise HTTPException(400, f"Unknown role: {data.role}")
    if db.get(UserProfile, data.id):
        raise HTTPException(400, f"Profile {data.id} already exists")
    profile = UserProfile(**data.model_dump(), custom_claims={"admin": data.role == ROLE_ADMIN})
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@router.put("/profiles/{uid}", response_model=ProfileOut)
def update_profile(uid: str, data: ProfileUpdate, db: Session = Depends(get_db), user: dict = Depends(admins)):
    """A role change is mirrored onto the profile's claims."""
    fields = data.model_dump(exclude_unset=True)
    role = fields.pop("role", None)
    if role is not None and role not in ROLES:
        raise HTTPException(400, f"Unknown role: {role}")
    profile = db.get(UserProfile, uid)
    if not profile:
        raise HTTPException(404, "Profile not found")
    for k, v in fields.items():
        setattr(profile, k, v)
    db.commit()
    if role is not None:
        with domain_errors():
            profile = claims.update_profile_role(db, uid, role, updated_by=user.get("id") or user.get("username"))
    db.refresh(profile)
    return profile
