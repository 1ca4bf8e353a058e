"""
Shared request dependencies: store access, the acting user and role checks.

There is no sign-in: the acting user is whoever the X-User header names.
The role checks here and the claims checks behind `get_caller` only keep
honest clients apart and are not authorization. In particular any unknown
X-User value is taken as both uid and e-mail, so naming a bootstrap admin
e-mail is enough to pass `claims.initialize_first_admin`.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from database import SessionLocal, get_db
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, ROLE_COORDINATOR, ROLE_DOCTOR
from models import UserProfile
from store_sync import StoreSync
import claims

logger = logging.getLogger(__name__)

_store_sync: Optional[StoreSync] = None

# Built-in accounts available before any user is registered
DEMO_USERS = {
    "admin": {"username": "admin", "name": "Administrador", "role": ROLE_ADMIN},
    "coordenador": {"username": "coordenador", "name": "Coordenador Geral", "role": ROLE_COORDINATOR},
    "assistente": {"username": "assistente", "name": "Assistente Administrativo", "role": ROLE_ASSISTANT},
}


def get_store_sync() -> StoreSync:
    global _store_sync
    if _store_sync is None:
        _store_sync = StoreSync(
            SessionLocal,
            document_id=settings.store_document_id,
            max_retries=settings.sync_max_retries,
            base_delay=settings.sync_retry_base_delay,
        )
    return _store_sync


def get_store(sync: StoreSync = Depends(get_store_sync)) -> dict:
    try:
        return sync.load()
    except SQLAlchemyError as e:
        raise HTTPException(503, f"Store unavailable: {e}")


def resolve_user(store: dict, username: str) -> Optional[dict]:
    u = username.lower().strip()
    for user in store.get("users") or []:
        if (user.get("username") or "").lower() == u:
            return user
    if u in DEMO_USERS:
        return dict(DEMO_USERS[u])

    doctors = store.get("doctors") or []
    if u == "medico":
        doctor = next((d for d in doctors if "thiago" in d["name"].lower()), doctors[0] if doctors else None)
    else:
        doctor = next((d for d in doctors if u and u in d["name"].lower()), None)
    if doctor:
        return {"username": u, "name": doctor["name"], "role": ROLE_DOCTOR, "linked_doctor_id": doctor["id"]}
    return None


def get_current_user(x_user: Optional[str] = Header(None), store: dict = Depends(get_store)) -> dict:
    if not x_user:
        raise HTTPException(401, "Missing X-User header")
    user = resolve_user(store, x_user)
    if user is None:
        raise HTTPException(401, f"Unknown user {x_user}")
    return user


def require_roles(*roles: str):
    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise HTTPException(403, f"Role {user.get('role')} cannot perform this action")
        return user
    return checker


def linked_doctor_name(store: dict, user: dict) -> Optional[str]:
    """Name a Medico's views are restricted to."""
    if user.get("role") != ROLE_DOCTOR:
        return None
    doctor = next((d for d in store.get("doctors") or [] if d["id"] == user.get("linked_doctor_id")), None)
    return doctor["name"] if doctor else user.get("name")


@contextmanager
def domain_errors():
    """Translate domain exceptions into HTTP errors."""
    try:
        yield
    except PermissionError as e:
        raise HTTPException(403, str(e))
    except LookupError as e:
        raise HTTPException(404, str(e).strip("'\""))
    except ValueError as e:
        raise HTTPException(400, str(e))


def commit(sync: StoreSync, store: dict) -> dict:
    with domain_errors():
        try:
            sync.save(store)
        except SQLAlchemyError as e:
            raise HTTPException(503, sync.error_message or str(e))
    return store


def get_caller(x_user: Optional[str] = Header(None), db: Session = Depends(get_db)) -> Optional[dict]:
    """Profile identity (uid or e-mail in X-User) for the claims endpoints."""
    if not x_user:
        return None
    profile = db.get(UserProfile, x_user) or db.query(UserProfile).filter(UserProfile.email == x_user).first()
    if profile:
        return claims.caller_from_profile(profile)
    return {"uid": x_user, "email": x_user if "@" in x_user else None, "claims": {}}
