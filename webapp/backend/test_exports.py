import io

import openpyxl

from escala import exports
from escala import schedule_manager as sm
from escala.models import FinancialRow


def _row(**overrides):
    values = dict(
        date_key="2026-02-02", date="02/02/2026", hospital_name="Porto Feliz",
        in1="07:00", out1="19:00", in2="", out2="", duration_label="12 horas",
        value=1900.0, doctor_name="Marcos André", obs="", total_hours=12,
    )
    values.update(overrides)
    return FinancialRow(**values)


def test_format_brl():
    assert exports.format_brl(1900.5) == "R$ 1.900,50"
    assert exports.format_brl(0) == "R$ 0,00"


def test_financial_csv():
    data = exports.financial_csv([_row(), _row(date_key="2026-02-03", date="03/02/2026", obs="troca")])
    assert data.startswith(b"\xef\xbb\xbf")
    lines = data.decode("utf-8-sig").splitlines()
    assert lines[0] == "Data;Hospital;Entrada 1;Saída 1;Entrada 2;Saída 2;Duração;Valor (R$);Médico;Observações"
    assert lines[1] == "02/02/2026;Porto Feliz;07:00;19:00;;;12 horas;1900,00;Marcos André;"
    assert lines[2].endswith(";troca")


def test_financial_csv_without_rows():
    lines = exports.financial_csv([]).decode("utf-8-sig").splitlines()
    assert len(lines) == 1


def test_financial_workbook():
    wb = openpyxl.load_workbook(io.BytesIO(exports.financial_workbook([_row(), _row()], 3800.0, "Fevereiro")))
    ws = wb["Financeiro"]
    assert ws.cell(1, 1).value == "Fevereiro"
    assert ws.cell(3, 1).value == "Data"
    assert ws.cell(4, 9).value == "Marcos André"
    assert ws.cell(7, 8).value == 3800


def test_schedule_workbook(store):
    store = sm.create_month(store, "2026-02")
    wb = openpyxl.load_workbook(io.BytesIO(exports.schedule_workbook(store, "2026-02")))
    assert wb.sheetnames == [f"Semana {i}" for i in range(1, 6)]
    ws = wb["Semana 1"]
    assert ws.cell(3, 1).value == "Porto Feliz"
    assert ws.cell(3, 2).value == "Diurno"
    # Monday Jan 26th, shown in February's first week
    assert ws.cell(3, 3).value == "Marcos André 07-19h"


def test_timesheet_workbook():
    timesheet = {
        "company_name": "ISM HEALTH SOLUTIONS",
        "company_cnpj": "29.732.524/0001-59",
        "doctor_name": "Marcos André",
        "hospital_name": "Porto Feliz",
        "month": "2026-02",
        "entries": [
            {"date": "2026-02-02", "entry1": "07:00", "exit1": "19:00", "total_hours": 12,
             "value": 1900, "description": "Diurno"},
        ],
        "total_value": 1900,
    }
    ws = openpyxl.load_workbook(io.BytesIO(exports.timesheet_workbook(timesheet))).active
    assert ws.title == "Folha de Ponto"
    assert ws.cell(6, 1).value == "MÊS DE REFERÊNCIA: FEVEREIRO DE 2026"
    assert ws.cell(9, 1).value == "02/02/2026"
    assert ws.cell(9, 8).value == 1900
    assert ws.cell(11, 7).value == "12h"

    ws = openpyxl.load_workbook(io.BytesIO(exports.timesheet_workbook(timesheet, include_value=False))).active
    assert ws.cell(8, 8).value is None
