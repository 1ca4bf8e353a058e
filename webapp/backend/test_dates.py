from datetime import date

import pytest

from escala import dates


def test_weeks_cover_month_with_padding():
    weeks = dates.get_weeks_for_month("2026-02")
    assert len(weeks) == 5
    assert all(len(w) == 7 for w in weeks)
    # Feb 1st 2026 is a Sunday: the grid starts on Monday Jan 26th
    assert weeks[0][0].date_key == "2026-01-26"
    assert weeks[0][0].is_out_of_month
    assert weeks[0][6].date_key == "2026-02-01"
    assert not weeks[0][6].is_out_of_month
    assert weeks[-1][-1].date_key == "2026-03-01"
    assert weeks[-1][-1].is_out_of_month


def test_month_without_padding():
    weeks = dates.get_weeks_for_month("2021-02")
    assert len(weeks) == 4
    assert not any(d.is_out_of_month for w in weeks for d in w)


def test_week_days_start_on_monday():
    for week in dates.get_weeks_for_month("2026-06"):
        assert week[0].day_name == "Segunda-Feira"
        assert week[6].day_name == "Domingo"


def test_template_day_index_is_monday_first():
    assert dates.template_day_index(date(2026, 2, 2)) == 0   # Monday
    assert dates.template_day_index(date(2026, 2, 1)) == 6   # Sunday


def test_month_key_helpers():
    assert dates.get_month_key(date(2026, 3, 9)) == "2026-03"
    assert dates.shift_month("2026-01", -1) == "2025-12"
    assert dates.shift_month("2026-12", 1) == "2027-01"
    assert dates.get_month_name("2026-03") == "março de 2026"
    with pytest.raises(ValueError):
        dates.parse_month_key("2026-13")
    with pytest.raises(ValueError):
        dates.parse_month_key("March")


def test_display_formats():
    assert dates.to_date_key(date(2026, 1, 5)) == "2026-01-05"
    assert dates.format_display_date(date(2026, 1, 5)) == "05/01/2026"
    assert dates.format_date_pt("2026-01-05") == "05/01/2026"
    assert dates.tomorrow_date_key(date(2026, 1, 31)) == "2026-02-01"
    week = dates.get_weeks_for_month("2026-02")[1]
    assert dates.get_week_range_string(week) == "02/02 - 08/02"
