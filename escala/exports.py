"""CSV and Excel exports of the financial report, the month schedule and timesheets."""
import io
from dataclasses import asdict
from typing import List

import openpyxl
import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .dates import get_month_name, get_weeks_for_month, format_date_pt
from .models import FinancialRow

CSV_COLUMNS = {
    "date": "Data",
    "hospital_name": "Hospital",
    "in1": "Entrada 1",
    "out1": "Saída 1",
    "in2": "Entrada 2",
    "out2": "Saída 2",
    "duration_label": "Duração",
    "value": "Valor (R$)",
    "doctor_name": "Médico",
    "obs": "Observações",
}

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_thin = Side(border_style="thin", color="CBD5E1")
_border = Border(top=_thin, bottom=_thin, left=_thin, right=_thin)
_center = Alignment(horizontal="center", vertical="center", wrap_text=True)
_bold = Font(bold=True, size=11, name="Arial")
_header_font = Font(bold=True, color="FFFFFF")
_header_fill = PatternFill(start_color="FF10B981", end_color="FF10B981", fill_type="solid")
_dark_fill = PatternFill(start_color="FF1E293B", end_color="FF1E293B", fill_type="solid")
_muted_fill = PatternFill(start_color="FFF1F5F9", end_color="FFF1F5F9", fill_type="solid")


def format_brl(value: float) -> str:
    """1900.5 -> 'R$ 1.900,50'"""
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def financial_csv(rows: List[FinancialRow]) -> bytes:
    """Semicolon separated, decimal comma, UTF-8 with BOM so spreadsheets pick the encoding."""
    df = pd.DataFrame([asdict(r) for r in rows], columns=list(CSV_COLUMNS))
    df["value"] = df["value"].map(lambda v: f"{v:.2f}".replace(".", ","))
    df = df.rename(columns=CSV_COLUMNS)
    return df.to_csv(sep=";", index=False, lineterminator="\n").encode("utf-8-sig")


def _workbook_bytes(wb: openpyxl.Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _header_row(ws, row: int, headers: List[str], fill=_header_fill) -> None:
    for col, title in enumerate(headers, start=1):
        c = ws.cell(row, col, title)
        c.font = _header_font
        c.fill = fill
        c.alignment = _center
        c.border = _border


def financial_workbook(rows: List[FinancialRow], total: float, title: str = "Relatório Financeiro") -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Financeiro"

    ws.cell(1, 1, title).font = Font(bold=True, size=14)
    _header_row(ws, 3, list(CSV_COLUMNS.values()))

    row_idx = 4
    for r in rows:
        values = [r.date, r.hospital_name, r.in1, r.out1, r.in2, r.out2,
                  r.duration_label, r.value, r.doctor_name, r.obs]
        for col, value in enumerate(values, start=1):
            c = ws.cell(row_idx, col, value)
            c.border = _border
            c.alignment = _center if col <= 7 else Alignment(vertical="center", wrap_text=True)
        ws.cell(row_idx, 8).number_format = '"R$" #,##0.00'
        row_idx += 1

    ws.cell(row_idx + 1, 7, "Total Geral").font = _bold
    total_cell = ws.cell(row_idx + 1, 8, total)
    total_cell.font = _bold
    total_cell.number_format = '"R$" #,##0.00'

    for col, width in enumerate([12, 20, 10, 10, 10, 10, 12, 14, 25, 40], start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = "A4"
    return _workbook_bytes(wb)


def _cell_text(assignments: List[dict]) -> str:
    lines = []
    for a in assignments:
        text = a.get("name", "")
        if a.get("sub_name"):
            text += f" ({a['sub_name']})"
        if a.get("time"):
            text += f" {a['time']}"
        lines.append(text)
    return "\n".join(lines)


def schedule_workbook(store: dict, month_key: str) -> bytes:
    """One sheet per week: hospitals and shifts down, days across."""
    month = (store.get("months") or {}).get(month_key) or {}
    wb = openpyxl.Workbook()
    wb.remove(wb.active)

    for week_no, week in enumerate(get_weeks_for_month(month_key), start=1):
        ws = wb.create_sheet(f"Semana {week_no}")
        ws.cell(1, 1, get_month_name(month_key).capitalize()).font = Font(bold=True, size=14)
        _header_row(ws, 2, ["Hospital", "Turno"] + [f"{d.day_name}\n{d.date[:5]}" for d in week], fill=_dark_fill)

        row_idx = 3
        for loc in store.get("structure") or []:
            for shift in loc.get("shifts", []):
                ws.cell(row_idx, 1, loc["name"]).font = _bold
                ws.cell(row_idx, 2, shift["name"])
                cells = (month.get(loc["id"]) or {}).get(shift["id"]) or {}
                for col, day in enumerate(week, start=3):
                    assignments = cells.get(day.date_key) or []
                    c = ws.cell(row_idx, col, _cell_text(assignments))
                    c.alignment = _center
                    if day.is_out_of_month:
                        c.fill = _muted_fill
                    if any(a.get("is_red") for a in assignments):
                        c.font = Font(color="FFDC2626", bold=any(a.get("is_bold") for a in assignments))
                    elif any(a.get("is_bold") for a in assignments):
                        c.font = Font(bold=True)
                for col in range(1, len(week) + 3):
                    ws.cell(row_idx, col).border = _border
                row_idx += 1

        ws.column_dimensions["A"].width = 18
        ws.column_dimensions["B"].width = 20
        for col in range(3, 10):
            ws.column_dimensions[get_column_letter(col)].width = 22
        ws.freeze_panes = "C3"
    return _workbook_bytes(wb)


def timesheet_workbook(timesheet: dict, include_value: bool = True) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Folha de Ponto"

    ws.cell(1, 1, timesheet["company_name"]).font = Font(bold=True, size=14)
    ws.cell(2, 1, f"CNPJ: {timesheet['company_cnpj']}")
    ws.cell(3, 1, f"Médico: {timesheet['doctor_name']}").font = _bold
    ws.cell(4, 1, f"CRM: {timesheet.get('doctor_crm') or '-'}    Especialidade: {timesheet.get('doctor_specialty') or '-'}")
    ws.cell(5, 1, f"Hospital: {timesheet['hospital_name']}")
    ws.cell(6, 1, f"MÊS DE REFERÊNCIA: {get_month_name(timesheet['month']).upper()}").font = _bold

    headers = ["DATA", "DESCRIÇÃO", "E1", "S1", "E2", "S2", "TOTAL"]
    if include_value:
        headers.append("VALOR")
    _header_row(ws, 8, headers, fill=_dark_fill)

    row_idx = 9
    for e in timesheet.get("entries", []):
        values = [
            format_date_pt(e["date"]),
            e.get("description") or "Plantão",
            e.get("entry1"),
            e.get("exit1"),
            e.get("entry2") or "-",
            e.get("exit2") or "-",
            f"{e.get('total_hours', 0):g}h",
        ]
        if include_value:
            values.append(e.get("value") or 0)
        for col, value in enumerate(values, start=1):
            c = ws.cell(row_idx, col, value)
            c.border = _border
            c.alignment = _center
        if include_value:
            ws.cell(row_idx, 8).number_format = '"R$" #,##0.00'
        row_idx += 1

    total_hours = sum(e.get("total_hours", 0) for e in timesheet.get("entries", []))
    ws.cell(row_idx + 1, 6, "TOTAL").font = _bold
    ws.cell(row_idx + 1, 7, f"{total_hours:g}h").font = _bold
    if include_value:
        total_cell = ws.cell(row_idx + 1, 8, timesheet.get("total_value", 0))
        total_cell.font = _bold
        total_cell.number_format = '"R$" #,##0.00'

    ws.cell(row_idx + 4, 1, "_" * 40)
    ws.cell(row_idx + 5, 1, "Assinatura do Médico")

    for col, width in enumerate([12, 24, 8, 8, 8, 8, 10, 14], start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    return _workbook_bytes(wb)
