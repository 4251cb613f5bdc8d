from datetime import date

from fundcalc.core.dates import (
    add_months,
    filter_by_date_range,
    filter_by_period,
    nearest_nav,
    normalize_series,
    parse_flexible_date,
    select_series,
)
from fundcalc.schemas.series import NAVPoint


def make_series(*pairs):
    return [NAVPoint(date=d, nav=nav) for d, nav in pairs]


def test_parse_flexible_date_accepts_iso_and_day_first():
    assert parse_flexible_date("2024-03-15") == date(2024, 3, 15)
    assert parse_flexible_date("15-03-2024") == date(2024, 3, 15)
    assert parse_flexible_date(date(2024, 3, 15)) == date(2024, 3, 15)


def test_parse_flexible_date_falls_back_to_today(caplog):
    today = date(2025, 6, 1)

    assert parse_flexible_date("not a date", today=today) == today
    assert "fallback" in caplog.text


def test_normalize_series_sorts_and_drops_bad_navs(raw_series):
    raw = raw_series + [
        {"date": "06-01-2024", "nav": "N.A."},
        {"date": "07-01-2024", "nav": "0"},
    ]

    series = normalize_series(raw)

    assert [p.date for p in series] == [date(2024, 1, d) for d in range(1, 6)]
    assert all(p.nav > 0 for p in series)


def test_nearest_nav_prefers_exact_then_next_then_previous():
    series = make_series(
        (date(2024, 1, 1), 10.0),
        (date(2024, 1, 3), 11.0),
        (date(2024, 1, 8), 12.0),
    )

    assert nearest_nav(series, date(2024, 1, 3)).nav == 11.0
    # weekend gap: the next trading day wins over the previous one
    assert nearest_nav(series, date(2024, 1, 5)).nav == 12.0
    assert nearest_nav(series, date(2024, 2, 1)).nav == 12.0
    assert nearest_nav(series, date(2023, 12, 1)).nav == 10.0


def test_nearest_nav_on_empty_series_is_none():
    assert nearest_nav([], date(2024, 1, 1)) is None


def test_date_range_filter_includes_both_ends():
    series = make_series(
        (date(2024, 1, 1), 10.0),
        (date(2024, 1, 2), 11.0),
        (date(2024, 1, 3), 12.0),
        (date(2024, 1, 4), 13.0),
    )

    filtered = filter_by_date_range(series, "2024-01-02", "2024-01-03")

    assert [p.nav for p in filtered] == [11.0, 12.0]


def test_filter_by_period_keeps_recent_points():
    today = date(2024, 12, 31)
    series = make_series(
        (date(2023, 6, 1), 10.0),
        (date(2024, 3, 1), 11.0),
        (date(2024, 12, 1), 12.0),
    )

    assert [p.nav for p in filter_by_period(series, "1y", today)] == [11.0, 12.0]
    assert [p.nav for p in filter_by_period(series, "1m", today)] == [12.0]
    assert len(filter_by_period(series, "all", today)) == 3


def test_select_series_prefers_date_range_over_period(raw_series):
    series = select_series(raw_series, period="1m", start="2024-01-02", end="2024-01-04")

    assert [p.nav for p in series] == [105.0, 120.0, 99.0]


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 1, 31), 3) == date(2024, 4, 30)
