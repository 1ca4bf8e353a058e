"""
Role to authorization-claims mirroring for user profiles.

A caller is {"uid", "email", "claims"}; claims carry {"admin": bool}. A
profile's custom claims always follow its role: ADM means admin.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from escala.models import ROLE_ADMIN
from models import UserProfile

logger = logging.getLogger(__name__)


class Unauthenticated(Exception):
    pass


def require_caller(caller: Optional[dict]) -> dict:
    if not caller or not caller.get("uid"):
        raise Unauthenticated("Você precisa estar autenticado.")
    return caller


def _is_bootstrap(caller: dict, bootstrap_emails: Iterable[str]) -> bool:
    return bool(caller.get("email")) and caller["email"] in set(bootstrap_emails)


def caller_from_profile(profile: UserProfile) -> dict:
    return {"uid": profile.id, "email": profile.email, "claims": dict(profile.custom_claims or {})}


def set_admin_claim(
    db: Session, caller: Optional[dict], target_uid, is_admin: bool, bootstrap_emails: Iterable[str],
) -> dict:
    """Grant or revoke admin; granting also promotes the stored role to ADM."""
    caller = require_caller(caller)
    stored = db.get(UserProfile, caller["uid"])
    allowed = (
        _is_bootstrap(caller, bootstrap_emails)
        or (caller.get("claims") or {}).get("admin") is True
        or (stored is not None and stored.role == ROLE_ADMIN)
    )
    if not allowed:
        raise PermissionError("Apenas administradores podem conceder permissões de admin.")
    if not target_uid or not isinstance(target_uid, str):
        raise ValueError("É necessário fornecer o UID do usuário alvo.")

    target = db.get(UserProfile, target_uid)
    if target is None:
        raise LookupError(f"User {target_uid} not found")
    target.custom_claims = {"admin": is_admin is True}
    if is_admin:
        target.role = ROLE_ADMIN
        target.updated_by = caller["uid"]
    target.updated_at = datetime.utcnow()
    db.commit()

    logger.info("Custom claims updated for %s: admin=%s", target_uid, is_admin is True)
    return {
        "success": True,
        "message": f"Permissões de admin {'concedidas' if is_admin else 'revogadas'} com sucesso.",
    }


def sync_role_to_claims(profile: UserProfile, previous_role: Optional[str]) -> bool:
    """Mirror a role change onto the profile's claims; False when the role did not change."""
    if previous_role == profile.role:
        return False
    profile.custom_claims = {"admin": profile.role == ROLE_ADMIN}
    logger.info("Synced role to claims: %s -> admin=%s", profile.id, profile.role == ROLE_ADMIN)
    return True


def update_profile_role(db: Session, uid: str, role: str, updated_by: Optional[str] = None) -> UserProfile:
    profile = db.get(UserProfile, uid)
    if profile is None:
        raise LookupError(f"User {uid} not found")
    previous = profile.role
    profile.role = role
    profile.updated_by = updated_by
    profile.updated_at = datetime.utcnow()
    sync_role_to_claims(profile, previous)
    db.commit()
    db.refresh(profile)
    return profile


def get_user_claims(db: Session, caller: Optional[dict], target_uid: Optional[str] = None) -> dict:
    """Only admins may read another user's claims."""
    caller = require_caller(caller)
    target_uid = target_uid or caller["uid"]
    if target_uid != caller["uid"] and (caller.get("claims") or {}).get("admin") is not True:
        raise PermissionError("Você não tem permissão para ver claims de outros usuários.")
    profile = db.get(UserProfile, target_uid)
    if profile is None:
        raise LookupError("Usuário não encontrado.")
    return {"uid": profile.id, "email": profile.email, "custom_claims": dict(profile.custom_claims or {})}


def initialize_first_admin(
    db: Session, caller: Optional[dict], bootstrap_emails: Iterable[str], name: Optional[str] = None,
) -> dict:
    """Bootstrap e-mails make themselves admin; the profile is created or merged."""
    caller = require_caller(caller)
    if not _is_bootstrap(caller, bootstrap_emails):
        raise PermissionError("Apenas emails autorizados podem inicializar o sistema.")

    profile = db.get(UserProfile, caller["uid"])
    if profile is None:
        profile = UserProfile(id=caller["uid"], created_at=datetime.utcnow())
        db.add(profile)
    profile.email = caller["email"]
    profile.role = ROLE_ADMIN
    profile.name = name or profile.name or "Administrador"
    profile.is_bootstrap_admin = True
    profile.custom_claims = {"admin": True}
    db.commit()

    logger.info("First admin initialized: %s", caller["email"])
    return {"success": True, "message": "Você foi configurado como administrador do sistema."}
