"""Monthly financial report."""
from typing import Optional

from fastapi import APIRouter, Depends

from deps import domain_errors, get_store, linked_doctor_name, require_roles
from escala import dates, financial
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, ROLE_COORDINATOR, ROLE_DOCTOR

router = APIRouter()

readers = require_roles(ROLE_ADMIN, ROLE_COORDINATOR, ROLE_ASSISTANT, ROLE_DOCTOR)


@router.get("/financial/{month_key}")
def financial_report(
    month_key: str,
    doctor: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(readers),
):
    """Rows, grand total and totals by hospital and by doctor. A Medico only gets their own rows."""
    with domain_errors():
        dates.parse_month_key(month_key)
    doctor = linked_doctor_name(store, user) or doctor
    rows = financial.build_financial_report(store, month_key, doctor)
    summary = financial.summarize_report(rows)
    return {
        "month_key": month_key,
        "name": dates.get_month_name(month_key),
        "rows": rows,
        "total": summary.total,
        "by_hospital": summary.by_hospital,
        "by_doctor": summary.by_doctor,
    }
