#!/usr/bin/env python3
"""
Escala CLI: work on a schedule store kept in a JSON file.

Usage:
  # Start a store from the seed data
  python run_escala.py init --store escala.json

  # Create months from the weekly template (existing entries are kept)
  python run_escala.py apply-template --store escala.json --months 2026-02 2026-03
  python run_escala.py apply-template --store escala.json --months 2026-02 --overwrite

  # Financial report of a month, printed or written as CSV / Excel
  python run_escala.py report --store escala.json --month 2026-02 --out financeiro.csv

  # Timesheet of a doctor at one hospital
  python run_escala.py timesheet --store escala.json --month 2026-02 \
      --doctor doc-init-3 --hospital porto-feliz --out folha.xlsx
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from escala import exports
from escala import schedule_manager as sm
from escala.dates import get_month_name
from escala.financial import build_financial_report, report_total, summarize_report
from escala.timesheets import build_timesheet


def _resolve(p: str) -> Path:
    pp = Path(p)
    if pp.is_absolute():
        return pp
    return Path.cwd() / pp


def _load(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _save(path: Path, store: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(store, f, ensure_ascii=False, indent=2)


def cmd_init(args):
    path = _resolve(args.store)
    if path.exists() and not args.force:
        print(f"{path} already exists (use --force to replace it)")
        sys.exit(1)
    store = sm.initialize_store()
    _save(path, store)
    print(f"Created: {path}")
    print(f"  Locations: {len(store['structure'])}")
    print(f"  Doctors: {len(store['doctors'])}")
    print(f"  Financial rules: {len(store['financial_rules'])}")


def cmd_apply_template(args):
    path = _resolve(args.store)
    store = _load(path)
    mode = sm.OVERWRITE if args.overwrite else sm.FILL_EMPTY
    store = sm.apply_template(store, args.months, mode)
    _save(path, store)
    for month_key in args.months:
        print(f"  {month_key} ({get_month_name(month_key)}): template applied, mode {mode}")


def cmd_report(args):
    store = _load(_resolve(args.store))
    rows = build_financial_report(store, args.month, doctor_name=args.doctor)
    total = report_total(rows)

    if args.out:
        out_path = _resolve(args.out)
        if out_path.suffix.lower() == ".csv":
            out_path.write_bytes(exports.financial_csv(rows))
        else:
            title = f"Relatório Financeiro - {get_month_name(args.month)}"
            out_path.write_bytes(exports.financial_workbook(rows, total, title))
        print(f"Report written to: {out_path}")

    summary = summarize_report(rows)
    print(f"\n{get_month_name(args.month)}: {len(rows)} row(s), total {exports.format_brl(total)}")
    print("By hospital:")
    for item in summary.by_hospital:
        print(f"  {item['name']:<24} {exports.format_brl(item['value'])}")
    print("By doctor:")
    for item in summary.by_doctor[:args.top]:
        print(f"  {item['name']:<24} {exports.format_brl(item['value'])}")


def cmd_timesheet(args):
    store = _load(_resolve(args.store))
    try:
        timesheet = build_timesheet(store, args.doctor, args.hospital, args.month)
    except LookupError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"{timesheet['doctor_name']} @ {timesheet['hospital_name']} ({get_month_name(args.month)})")
    for e in timesheet["entries"]:
        print(f"  {e['date']}  {e['entry1']}-{e['exit1']}  {e['total_hours']:g}h  {e['description']}")
    print(f"  Total: {exports.format_brl(timesheet['total_value'])}")

    if args.out:
        out_path = _resolve(args.out)
        out_path.write_bytes(exports.timesheet_workbook(timesheet, include_value=not args.no_value))
        print(f"Timesheet written to: {out_path}")


def main():
    parser = argparse.ArgumentParser(
        description="Escala: hospital shift schedules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", help="Command")

    # init
    p_init = sub.add_parser("init", help="Create a store from the seed data")
    p_init.add_argument("--store", required=True, help="Store JSON path")
    p_init.add_argument("--force", action="store_true")

    # apply-template
    p_apply = sub.add_parser("apply-template", help="Project the weekly template onto months")
    p_apply.add_argument("--store", required=True, help="Store JSON path")
    p_apply.add_argument("--months", nargs="+", required=True, help="YYYY-MM")
    p_apply.add_argument("--overwrite", action="store_true", help="Replace existing entries")

    # report
    p_report = sub.add_parser("report", help="Financial report of a month")
    p_report.add_argument("--store", required=True, help="Store JSON path")
    p_report.add_argument("--month", required=True, help="YYYY-MM")
    p_report.add_argument("--doctor", default=None, help="Only this doctor")
    p_report.add_argument("--out", default=None, help=".csv or .xlsx output")
    p_report.add_argument("--top", type=int, default=10)

    # timesheet
    p_ts = sub.add_parser("timesheet", help="Timesheet of a doctor at a hospital")
    p_ts.add_argument("--store", required=True, help="Store JSON path")
    p_ts.add_argument("--month", required=True, help="YYYY-MM")
    p_ts.add_argument("--doctor", required=True, help="Doctor id")
    p_ts.add_argument("--hospital", required=True, help="Location id")
    p_ts.add_argument("--out", default=None, help=".xlsx output")
    p_ts.add_argument("--no-value", action="store_true", help="Leave the value column out")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    dispatch = {
        "init": cmd_init,
        "apply-template": cmd_apply_template,
        "report": cmd_report,
        "timesheet": cmd_timesheet,
    }
    try:
        dispatch[args.command](args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
