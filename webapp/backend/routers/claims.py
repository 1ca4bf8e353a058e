"""Admin claims of user profiles."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import claims
from config import settings
from database import get_db
from deps import domain_errors, get_caller
from schemas import AdminClaimRequest, InitializeAdminRequest

router = APIRouter()


def _authenticated(caller: Optional[dict]):
    try:
        return claims.require_caller(caller)
    except claims.Unauthenticated as e:
        raise HTTPException(401, str(e))


@router.post("/admin")
def set_admin_claim(data: AdminClaimRequest, db: Session = Depends(get_db), caller=Depends(get_caller)):
    caller = _authenticated(caller)
    with domain_errors():
        return claims.set_admin_claim(db, caller, data.target_uid, data.is_admin, settings.bootstrap_admin_emails)


@router.get("/")
def get_claims(target_uid: Optional[str] = None, db: Session = Depends(get_db), caller=Depends(get_caller)):
    caller = _authenticated(caller)
    with domain_errors():
        return claims.get_user_claims(db, caller, target_uid)


@router.post("/initialize-admin")
def initialize_first_admin(
    data: InitializeAdminRequest, db: Session = Depends(get_db), caller=Depends(get_caller),
):
    caller = _authenticated(caller)
    with domain_errors():
        return claims.initialize_first_admin(db, caller, settings.bootstrap_admin_emails, data.name)
