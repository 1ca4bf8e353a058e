"""The weekly template that seeds new months."""
from typing import Optional

from fastapi import APIRouter, Depends

from deps import get_store, require_roles
from escala import schedule_manager as sm
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT

router = APIRouter()


@router.get("/")
def get_template(
    doctor: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(require_roles(ROLE_ADMIN, ROLE_ASSISTANT)),
):
    view = sm.get_template_view_data(store.get("structure") or [], store.get("template"))
    if doctor:
        view = sm.apply_doctor_filter(view, doctor)
    return view
