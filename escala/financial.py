"""
Financial rules and the monthly financial report.

A rule prices one (hospital name, shift name, doctor type) combination.
Doctors and hospitals are linked to rules by name, so renaming a hospital
must rename its rules too (see schedule_manager.update_location).
"""

import re
import uuid
from typing import Dict, List, Optional, Tuple

from .dates import format_date_pt
from .models import DOCTOR_DIF, FinancialRow, ReportSummary
from .seed_data import SHIFT_DISPLAY_TIMES, SHIFT_TIMES_CONFIG

_TIME_RE = re.compile(r"(\d{1,2})[^\d]*(\d{1,2})")

# Hours counted for an assignment whose time text cannot be parsed
DEFAULT_SHIFT_HOURS = 12


def parse_time(text: Optional[str]) -> Tuple[str, str]:
    """'07-19h' -> ('07:00', '19:00'); unparseable text -> ('', '')."""
    if not text:
        return "", ""
    m = _TIME_RE.search(text)
    if not m:
        return "", ""
    return f"{int(m.group(1)):02d}:00", f"{int(m.group(2)):02d}:00"


def time_for_period(period: str) -> str:
    """Display time for a shift period name, '' when the period is unknown."""
    key = (period or "").lower()
    if key in SHIFT_DISPLAY_TIMES:
        return SHIFT_DISPLAY_TIMES[key]
    config = SHIFT_TIMES_CONFIG.get(key)
    if config and config[0] and config[1]:
        return f"{config[0].split(':')[0]}-{config[1].split(':')[0]}h"
    return ""


def _location(store: dict, location_id: str) -> Optional[dict]:
    return next((l for l in store.get("structure") or [] if l["id"] == location_id), None)


def find_doctor(store: dict, name: str) -> Optional[dict]:
    return next((d for d in store.get("doctors") or [] if d["name"] == name), None)


def calculate_assignment_value(
    store: dict, doctor_name: str, location_id: str, period: str,
) -> Optional[float]:
    """Rule value for this doctor at this hospital and period, None when no rule matches."""
    doctor = find_doctor(store, doctor_name)
    loc = _location(store, location_id)
    if not doctor or not loc:
        return None
    is_dif = doctor.get("type") == DOCTOR_DIF
    for rule in store.get("financial_rules") or []:
        if (rule["hospital_name"] == loc["name"]
                and rule["shift_name"] == period
                and bool(rule.get("is_dif")) == is_dif):
            return rule["value"]
    return None


def default_period_and_time(store: dict, location_id: str, shift_id: str) -> Tuple[str, str]:
    """
    Autofill for a new assignment: the shift name becomes the period when a
    rule exists for it, and the time comes from the period tables.
    """
    loc = _location(store, location_id)
    shift = next((s for s in (loc or {}).get("shifts", []) if s["id"] == shift_id), None)
    if not loc or not shift:
        return "", ""
    has_rule = any(
        r["hospital_name"] == loc["name"] and r["shift_name"] == shift["name"]
        for r in store.get("financial_rules") or []
    )
    period = shift["name"] if has_rule else ""
    return period, time_for_period(period or shift["name"])


def add_rule(store: dict, hospital_name: str, shift_name: str, value: float, is_dif: bool = False) -> dict:
    if not hospital_name or not shift_name or not value:
        raise ValueError("Rule needs hospital, shift and a non-zero value")
    rule = {
        "id": f"rule-{uuid.uuid4().hex[:12]}",
        "hospital_name": hospital_name,
        "shift_name": shift_name,
        "value": float(value),
        "is_dif": bool(is_dif),
    }
    return {**store, "financial_rules": list(store.get("financial_rules") or []) + [rule]}


def remove_rule(store: dict, rule_id: str) -> dict:
    rules = [r for r in store.get("financial_rules") or [] if r["id"] != rule_id]
    if len(rules) == len(store.get("financial_rules") or []):
        raise LookupError(f"Rule {rule_id} not found")
    return {**store, "financial_rules": rules}


def update_rule_value(store: dict, rule_id: str, value: float) -> dict:
    found = False
    rules = []
    for r in store.get("financial_rules") or []:
        if r["id"] == rule_id:
            r = {**r, "value": float(value)}
            found = True
        rules.append(r)
    if not found:
        raise LookupError(f"Rule {rule_id} not found")
    return {**store, "financial_rules": rules}


def _assignment_total(a: dict) -> float:
    return (a.get("value") or 0) + (a.get("extra_value") or 0)


def _hours(start: str, end: str) -> int:
    if not start or not end:
        return DEFAULT_SHIFT_HOURS
    diff = int(end.split(":")[0]) - int(start.split(":")[0])
    return diff + 24 if diff <= 0 else diff


def build_financial_report(
    store: dict, month_key: str, doctor_name: Optional[str] = None,
) -> List[FinancialRow]:
    """
    One row per (day, doctor, hospital) with a positive value.
    Days of adjacent months shown in the grid are left to their own month.
    """
    month = (store.get("months") or {}).get(month_key)
    if not month:
        return []

    groups: Dict[tuple, dict] = {}
    for loc in store.get("structure") or []:
        for _shift_id, dates in (month.get(loc["id"]) or {}).items():
            for date_key, assignments in dates.items():
                if not date_key.startswith(month_key):
                    continue
                for a in assignments:
                    if doctor_name and a.get("name") != doctor_name:
                        continue
                    if _assignment_total(a) <= 0:
                        continue
                    key = (date_key, a.get("name", "").strip(), loc["id"])
                    group = groups.setdefault(key, {
                        "date_key": date_key,
                        "doctor": a.get("name", ""),
                        "hospital": loc["name"],
                        "items": [],
                    })
                    group["items"].append((parse_time(a.get("time")), a))

    rows: List[FinancialRow] = []
    for group in groups.values():
        items = sorted(group["items"], key=lambda item: item[0][0])
        (in1, out1), _ = items[0]
        in2, out2 = items[1][0] if len(items) > 1 else ("", "")
        total_hours = sum(_hours(start, end) for (start, end), _ in items)

        obs_parts: List[str] = []
        for _, a in items:
            for text in (a.get("extra_value_reason"), a.get("note")):
                if text and text not in obs_parts:
                    obs_parts.append(text)

        rows.append(FinancialRow(
            date_key=group["date_key"],
            date=format_date_pt(group["date_key"]),
            hospital_name=group["hospital"],
            in1=in1,
            out1=out1,
            in2=in2,
            out2=out2,
            duration_label=f"{total_hours} horas",
            value=sum(_assignment_total(a) for _, a in items),
            doctor_name=group["doctor"],
            obs="; ".join(obs_parts),
            total_hours=total_hours,
        ))

    rows.sort(key=lambda r: r.date_key)
    return rows


def report_total(rows: List[FinancialRow]) -> float:
    return sum(r.value for r in rows)


def summarize_report(rows: List[FinancialRow]) -> ReportSummary:
    by_hospital: Dict[str, float] = {}
    by_doctor: Dict[str, float] = {}
    for r in rows:
        by_hospital[r.hospital_name] = by_hospital.get(r.hospital_name, 0) + r.value
        by_doctor[r.doctor_name] = by_doctor.get(r.doctor_name, 0) + r.value

    def _ranked(totals: Dict[str, float]) -> List[dict]:
        return [{"name": k, "value": v} for k, v in sorted(totals.items(), key=lambda kv: -kv[1])]

    return ReportSummary(
        total=report_total(rows),
        by_hospital=_ranked(by_hospital),
        by_doctor=_ranked(by_doctor),
    )
