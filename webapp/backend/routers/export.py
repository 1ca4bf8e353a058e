"""Downloads: financial report as CSV or Excel, the month schedule and timesheets as Excel."""
import io
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from deps import domain_errors, get_store, linked_doctor_name, require_roles
from escala import dates, exports, financial
from escala.models import ROLE_ADMIN, ROLE_ASSISTANT, ROLE_COORDINATOR, ROLE_DOCTOR

router = APIRouter()

readers = require_roles(ROLE_ADMIN, ROLE_COORDINATOR, ROLE_ASSISTANT, ROLE_DOCTOR)


def _download(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _report_rows(store: dict, user: dict, month_key: str, doctor: Optional[str]):
    with domain_errors():
        dates.parse_month_key(month_key)
    return financial.build_financial_report(store, month_key, linked_doctor_name(store, user) or doctor)


@router.get("/financial/{month_key}.csv")
def financial_csv(
    month_key: str,
    doctor: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(readers),
):
    rows = _report_rows(store, user, month_key, doctor)
    return _download(exports.financial_csv(rows), "text/csv; charset=utf-8", f"relatorio_financeiro_{month_key}.csv")


@router.get("/financial/{month_key}.xlsx")
def financial_excel(
    month_key: str,
    doctor: Optional[str] = None,
    store: dict = Depends(get_store),
    user: dict = Depends(readers),
):
    rows = _report_rows(store, user, month_key, doctor)
    content = exports.financial_workbook(
        rows, financial.report_total(rows), f"Relatório Financeiro - {dates.get_month_name(month_key)}",
    )
    return _download(content, exports.XLSX_MEDIA_TYPE, f"relatorio_financeiro_{month_key}.xlsx")


@router.get("/schedule/{month_key}.xlsx")
def schedule_excel(month_key: str, store: dict = Depends(get_store), user: dict = Depends(readers)):
    with domain_errors():
        content = exports.schedule_workbook(store, month_key)
    return _download(content, exports.XLSX_MEDIA_TYPE, f"escala_{month_key}.xlsx")


@router.get("/timesheets/{timesheet_id}.xlsx")
def timesheet_excel(
    timesheet_id: str,
    include_value: bool = True,
    store: dict = Depends(get_store),
    user: dict = Depends(readers),
):
    with domain_errors():
        timesheet = next((t for t in store.get("timesheets") or [] if t["id"] == timesheet_id), None)
        if timesheet is None or (
            user["role"] == ROLE_DOCTOR and timesheet["doctor_id"] != user.get("linked_doctor_id")
        ):
            raise LookupError(f"Timesheet {timesheet_id} not found")
        content = exports.timesheet_workbook(timesheet, include_value)
    return _download(content, exports.XLSX_MEDIA_TYPE, f"folha_de_ponto_{timesheet['month']}.xlsx")
