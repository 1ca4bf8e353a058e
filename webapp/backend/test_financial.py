import pytest

from escala import financial
from escala import schedule_manager as sm
from escala.models import CellRef


def test_parse_time():
    assert financial.parse_time("07-19h") == ("07:00", "19:00")
    assert financial.parse_time("7-13h") == ("07:00", "13:00")
    assert financial.parse_time("") == ("", "")
    assert financial.parse_time("a combinar") == ("", "")


def test_time_for_period():
    assert financial.time_for_period("Noturno") == "19-07h"
    assert financial.time_for_period("Manhã Sábado - Salto") == "07-13h"
    assert financial.time_for_period("Sobreaviso Diurno") == ""


def test_value_depends_on_doctor_type(store):
    doctor = next(d for d in store["doctors"] if d["name"] == "Marcos André")
    assert financial.calculate_assignment_value(store, "Marcos André", "porto-feliz", "Diurno") == 1900
    store = sm.toggle_doctor_type(store, doctor["id"])
    assert financial.calculate_assignment_value(store, "Marcos André", "porto-feliz", "Diurno") == 2000
    assert financial.calculate_assignment_value(store, "Desconhecido", "porto-feliz", "Diurno") is None
    assert financial.calculate_assignment_value(store, "Marcos André", "porto-feliz", "Plantão") is None


def test_rules_lifecycle(store):
    store = financial.add_rule(store, "Salto", "Noturno", 2500)
    rule = store["financial_rules"][-1]
    assert rule["is_dif"] is False
    store = financial.update_rule_value(store, rule["id"], 2700)
    assert store["financial_rules"][-1]["value"] == 2700.0
    store = financial.remove_rule(store, rule["id"])
    assert all(r["id"] != rule["id"] for r in store["financial_rules"])
    with pytest.raises(LookupError):
        financial.remove_rule(store, rule["id"])
    with pytest.raises(ValueError):
        financial.add_rule(store, "Salto", "Noturno", 0)


@pytest.fixture
def priced_store(store):
    store = sm.create_month(store, "2026-02")
    for date_key in ("2026-02-02", "2026-02-03", "2026-02-04"):
        cell = CellRef("porto-feliz", "pf-diurno", date_key=date_key)
        store = sm.save_assignment(store, cell, {"name": "Marcos André"})
    night = CellRef("porto-feliz", "pf-noturno", date_key="2026-02-02")
    store = sm.save_assignment(store, night, {"name": "Marcos André", "period": "Noturno", "time": "19-07h"})
    salto = CellRef("salto", "sa-manha", date_key="2026-02-05")
    store = sm.save_assignment(
        store, salto, {"name": "Pedro Maich", "extra_value": 200, "extra_value_reason": "hora extra"},
    )
    # a padding day stored under February does not count for February
    padding = CellRef("porto-feliz", "pf-diurno", date_key="2026-01-26", month="2026-02")
    return sm.save_assignment(store, padding, {"name": "Marcos André"})


def test_report_total_equals_sum_of_values(priced_store):
    rows = financial.build_financial_report(priced_store, "2026-02")
    # three day shifts and one night shift at 1900, Salto morning 1300 + 200 extra
    assert financial.report_total(rows) == 4 * 1900 + 1300 + 200
    assert [r.date_key for r in rows] == sorted(r.date_key for r in rows)
    assert all(r.date_key.startswith("2026-02") for r in rows)


def test_same_day_same_hospital_is_one_row(priced_store):
    rows = financial.build_financial_report(priced_store, "2026-02", doctor_name="Marcos André")
    feb2 = [r for r in rows if r.date_key == "2026-02-02"]
    assert len(feb2) == 1
    row = feb2[0]
    assert (row.in1, row.out1, row.in2, row.out2) == ("07:00", "19:00", "19:00", "07:00")
    assert row.value == 3800
    assert row.total_hours == 24
    assert row.duration_label == "24 horas"
    assert row.date == "02/02/2026"


def test_observations_and_summary(priced_store):
    rows = financial.build_financial_report(priced_store, "2026-02")
    salto = next(r for r in rows if r.hospital_name == "Salto")
    assert salto.obs == "hora extra"
    assert salto.value == 1500

    summary = financial.summarize_report(rows)
    assert summary.total == financial.report_total(rows)
    assert summary.by_hospital[0] == {"name": "Porto Feliz", "value": 7600}
    assert {d["name"] for d in summary.by_doctor} == {"Marcos André", "Pedro Maich"}


def test_unknown_month_has_no_rows(store):
    assert financial.build_financial_report(store, "2030-01") == []
