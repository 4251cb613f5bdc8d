import math
from datetime import date

import pytest

from fundcalc.core.dates import add_months
from fundcalc.core.sip import (
    calculate_expected_sip,
    calculate_historical_sip,
    calculate_lumpsum,
    calculate_lumpsum_sip,
    calculate_sip_portfolio,
    compare_fund_sips,
    contribution_dates,
    sip_future_value,
    sip_value_and_investment,
    step_up_sip_future_value,
)
from fundcalc.schemas.sip import (
    ContributionStream,
    ExpectedSIPRequest,
    HistoricalSIPRequest,
    LumpsumRequest,
    LumpsumSIPRequest,
    SIPCompareRequest,
    SIPPortfolioRequest,
    StepUp,
)


def monthly_navs(start: date, count: int, first_nav: float = 10.0, step: float = 1.0):
    """One NAV per month, rising by ``step`` each month, as API rows."""
    return [
        {"date": add_months(start, i).isoformat(), "nav": first_nav + step * i}
        for i in range(count)
    ]


# -----------------------------
# Closed forms
# -----------------------------


def test_zero_rate_sip_is_plain_sum():
    assert sip_future_value(1000.0, 0.0, 24) == 24000.0


def test_zero_step_up_matches_closed_form():
    closed = sip_future_value(5000.0, 0.01, 120)
    looped, invested = step_up_sip_future_value(5000.0, 0.01, 120, 0.0)

    assert math.isclose(looped, closed, rel_tol=1e-9)
    assert invested == pytest.approx(600000.0)


def test_step_up_raises_installment_after_each_year():
    _, invested = sip_value_and_investment(1000.0, 0.01, 24, 0.10)

    assert invested == pytest.approx(12 * 1000 + 12 * 1100)


def test_lumpsum_ten_years_at_twelve_percent():
    result = calculate_lumpsum(LumpsumRequest(amount=500000, annual_rate_percent=12, years=10))

    assert result.total_value == pytest.approx(1552924.1, abs=1.0)
    assert result.estimated_returns == pytest.approx(result.total_value - 500000, abs=0.01)


def test_lumpsum_sip_totals_add_up():
    result = calculate_lumpsum_sip(
        LumpsumSIPRequest(lumpsum=100000, monthly_sip=5000, years=10, annual_rate_percent=12)
    )

    assert result.total_investment == 100000 + 5000 * 120
    assert result.total_value == pytest.approx(result.lumpsum_value + result.sip_value, abs=0.01)
    assert result.total_returns > 0


# -----------------------------
# Expected-rate mode
# -----------------------------


def test_expected_sip_ten_years_at_twelve_percent():
    start = date(2020, 1, 1)
    result = calculate_expected_sip(
        ExpectedSIPRequest(monthly_amount=5000, annual_rate_percent=12, start_date=start, months=120)
    )

    assert result.mode == "expected"
    assert result.total_investment == 600000
    assert result.total_value == pytest.approx(1161695.4, abs=5.0)
    assert result.annualized_return == 12
    assert result.xirr is not None and result.xirr > 0

    assert 2 <= len(result.timeline) <= 22
    assert result.timeline[-1].date == add_months(start, 120)
    assert result.timeline[-1].market_value == result.total_value
    assert len(result.cash_flows) == 121


def test_expected_sip_with_lumpsum_counts_it_once():
    result = calculate_expected_sip(
        ExpectedSIPRequest(
            monthly_amount=1000,
            annual_rate_percent=10,
            start_date=date(2021, 1, 1),
            months=12,
            lumpsum=50000,
        )
    )

    assert result.initial_lumpsum == 50000
    assert result.total_investment == 62000
    assert result.cash_flows[0].amount == -50000


# -----------------------------
# Historical-replay mode
# -----------------------------


def test_contribution_dates_do_not_drift_from_month_end():
    dates = contribution_dates(date(2024, 1, 31), date(2024, 4, 30))

    assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]


def test_historical_sip_buys_units_at_each_nav():
    start = date(2023, 1, 1)
    data = monthly_navs(start, 13)

    result = calculate_historical_sip(
        HistoricalSIPRequest(data=data, amount=1000, start_date=start, end_date=date(2024, 1, 1))
    )

    expected_units = sum(1000 / (10.0 + i) for i in range(13))
    assert result.mode == "historical"
    assert result.total_investment == 13000
    assert result.total_units == pytest.approx(expected_units, abs=1e-4)
    assert result.end_nav == 22.0
    assert result.total_value == pytest.approx(expected_units * 22.0, abs=0.01)
    assert result.xirr > 0
    assert result.timeline[-1].nav == 22.0


def test_historical_lumpsum_takes_the_first_installment_slot():
    start = date(2023, 1, 1)
    data = monthly_navs(start, 13)

    result = calculate_historical_sip(
        HistoricalSIPRequest(
            data=data, amount=1000, lumpsum=5000, start_date=start, end_date=date(2024, 1, 1)
        )
    )

    assert result.total_investment == 5000 + 12 * 1000
    assert result.cash_flows[0].amount == -5000


def test_historical_sip_without_data_in_range_is_empty():
    data = monthly_navs(date(2020, 1, 1), 6)

    result = calculate_historical_sip(
        HistoricalSIPRequest(
            data=data, amount=1000, start_date=date(2023, 1, 1), end_date=date(2024, 1, 1)
        )
    )

    assert result.total_investment == 0
    assert result.total_value == 0
    assert result.timeline == []


def test_flat_nav_history_has_no_returns():
    start = date(2023, 1, 1)
    data = monthly_navs(start, 13, first_nav=25.0, step=0.0)

    result = calculate_historical_sip(
        HistoricalSIPRequest(data=data, amount=2000, start_date=start, end_date=date(2024, 1, 1))
    )

    assert result.total_value == pytest.approx(result.total_investment)
    assert result.absolute_return == 0


# -----------------------------
# Portfolio and fund comparison
# -----------------------------


def test_portfolio_grows_each_stream_until_maturity():
    stream = ContributionStream(
        monthly_amount=1000,
        start_date=date(2020, 1, 1),
        end_date=date(2021, 1, 1),
        annual_rate_percent=12,
    )
    invalid = ContributionStream(
        monthly_amount=1000,
        start_date=date(2021, 1, 1),
        end_date=date(2020, 1, 1),
        annual_rate_percent=12,
    )

    result = calculate_sip_portfolio(
        SIPPortfolioRequest(maturity_date=date(2022, 1, 1), streams=[stream, invalid])
    )

    assert len(result.breakdown) == 1
    row = result.breakdown[0]
    assert row.months == 12
    expected = sip_future_value(1000, 0.01, 12) * 1.01 ** 11
    assert row.future_value == pytest.approx(expected, abs=0.01)
    assert result.total_investment == 12000


def test_portfolio_reports_step_up_rate():
    stream = ContributionStream(
        monthly_amount=1000,
        start_date=date(2020, 1, 1),
        end_date=date(2023, 1, 1),
        annual_rate_percent=12,
        step_up=StepUp(enabled=True, annual_rate_percent=10),
    )

    result = calculate_sip_portfolio(SIPPortfolioRequest(maturity_date=date(2023, 1, 1), streams=[stream]))

    assert result.breakdown[0].step_up_rate_percent == pytest.approx(10.0)
    assert result.total_investment > 1000 * result.breakdown[0].months


def test_compare_fund_sips_keeps_fund_order():
    start = date(2023, 1, 1)
    request = SIPCompareRequest(
        funds=[
            {"scheme_code": 1, "scheme_name": "Rising", "data": monthly_navs(start, 13)},
            {"scheme_code": 2, "scheme_name": "Empty", "data": []},
        ],
        monthly_amount=1000,
    )

    results = compare_fund_sips(request)

    assert [r.scheme_code for r in results] == [1, 2]
    assert results[0].total_investment == 13000
    assert results[0].absolute_return > 0
    assert results[1].total_value == 0
