"""SIP and lumpsum future-value engines.

Two ways of valuing a SIP are supported:

  - expected-rate mode: contributions compound at a constant monthly rate
    (annuity-due, i.e. each installment grows for the month it is paid in);
  - historical-replay mode: each installment buys fractional units at the NAV
    applicable on its date and the holding is valued at the end-date NAV.

Both report the invested total, absolute and annualized return, XIRR over the
dated cash flows and a decimated timeline for charting. Inputs are expected to
be validated by the caller; degenerate inputs produce zero results.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

from fundcalc.core.dates import add_months, nearest_nav, normalize_series, select_series
from fundcalc.core.xirr import xirr_percent
from fundcalc.schemas.series import CashFlow, NAVPoint
from fundcalc.schemas.sip import (
    ExpectedSIPRequest,
    FundSIPComparison,
    HistoricalSIPRequest,
    LumpsumRequest,
    LumpsumResult,
    LumpsumSIPRequest,
    LumpsumSIPResult,
    SIPCompareRequest,
    SIPPortfolioRequest,
    SIPPortfolioResult,
    SIPResult,
    SIPStreamBreakdown,
    TimelinePoint,
)

logger = logging.getLogger(__name__)

MAX_TIMELINE_POINTS = 20
DAYS_PER_MONTH = 30.44


# -----------------------------
# Closed-form and period-loop building blocks
# -----------------------------


def sip_future_value(amount: float, monthly_rate: float, months: int) -> float:
    """Annuity-due future value: ``P * ((1+r)^n - 1) / r * (1+r)``."""
    if months <= 0:
        return 0.0
    if monthly_rate == 0:
        return amount * months
    return amount * ((1 + monthly_rate) ** months - 1) / monthly_rate * (1 + monthly_rate)


def step_up_sip_future_value(
    amount: float, monthly_rate: float, months: int, step_up_rate: float
) -> Tuple[float, float]:
    """Return ``(future value, amount invested)`` for an annually stepped-up SIP.

    The installment grows by ``step_up_rate`` after every twelfth month, so
    there is no closed form; each installment is compounded for the months
    remaining.
    """
    future_value = 0.0
    invested = 0.0
    current = amount
    for month in range(1, months + 1):
        remaining = months - month + 1
        future_value += current * (1 + monthly_rate) ** remaining
        invested += current
        if month % 12 == 0 and month < months:
            current *= 1 + step_up_rate
    return future_value, invested


def sip_value_and_investment(
    amount: float, monthly_rate: float, months: int, step_up_rate: float = 0.0
) -> Tuple[float, float]:
    if step_up_rate > 0:
        return step_up_sip_future_value(amount, monthly_rate, months, step_up_rate)
    return sip_future_value(amount, monthly_rate, months), amount * max(months, 0)


def lumpsum_future_value(amount: float, annual_rate: float, years: float) -> float:
    return amount * (1 + annual_rate) ** years


def _keep_on_timeline(index: int, count: int) -> bool:
    if count <= MAX_TIMELINE_POINTS:
        return True
    return index == 0 or index == count - 1 or index % max(1, count // MAX_TIMELINE_POINTS) == 0


def _absolute_return(value: float, invested: float) -> float:
    if invested <= 0:
        return 0.0
    return (value - invested) / invested * 100


def _empty_result(mode: str, lumpsum: float = 0.0) -> SIPResult:
    return SIPResult(
        mode=mode,
        total_investment=0.0,
        initial_lumpsum=lumpsum,
        estimated_returns=0.0,
        total_value=0.0,
        absolute_return=0.0,
        annualized_return=0.0,
    )


def _round_percent(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 2)


# -----------------------------
# Simple calculators
# -----------------------------


def calculate_lumpsum(request: LumpsumRequest) -> LumpsumResult:
    value = lumpsum_future_value(request.amount, request.annual_rate_percent / 100, request.years)
    return LumpsumResult(
        total_investment=request.amount,
        estimated_returns=round(value - request.amount, 2),
        total_value=round(value, 2),
    )


def calculate_lumpsum_sip(request: LumpsumSIPRequest) -> LumpsumSIPResult:
    annual_rate = request.annual_rate_percent / 100
    months = request.years * 12
    step_up = request.step_up.rate if request.step_up else 0.0

    lumpsum_value = lumpsum_future_value(request.lumpsum, annual_rate, request.years)
    sip_value, sip_invested = sip_value_and_investment(
        request.monthly_sip, annual_rate / 12, months, step_up
    )
    total_value = lumpsum_value + sip_value
    total_investment = request.lumpsum + sip_invested
    return LumpsumSIPResult(
        lumpsum_value=round(lumpsum_value, 2),
        sip_value=round(sip_value, 2),
        total_value=round(total_value, 2),
        total_investment=round(total_investment, 2),
        total_returns=round(total_value - total_investment, 2),
    )


# -----------------------------
# Expected-rate mode
# -----------------------------


def calculate_expected_sip(request: ExpectedSIPRequest) -> SIPResult:
    monthly_rate = request.annual_rate_percent / 100 / 12
    lumpsum_rate = (request.lumpsum_rate_percent or request.annual_rate_percent) / 100
    step_up = request.step_up.rate if request.step_up else 0.0
    months = request.months
    start = request.start_date

    sip_value, sip_invested = sip_value_and_investment(
        request.monthly_amount, monthly_rate, months, step_up
    )
    lumpsum_value = lumpsum_future_value(request.lumpsum, lumpsum_rate, months / 12)
    total_value = sip_value + lumpsum_value
    total_investment = sip_invested + request.lumpsum
    maturity = add_months(start, months)

    flows: List[CashFlow] = []
    timeline: List[TimelinePoint] = []
    if request.lumpsum > 0:
        flows.append(CashFlow(date=start, amount=-request.lumpsum))
        timeline.append(
            TimelinePoint(date=start, invested_value=request.lumpsum, market_value=request.lumpsum)
        )

    # month-by-month path for the timeline and the cash-flow list
    running_sip = 0.0
    invested = request.lumpsum
    installment = request.monthly_amount
    for index in range(months):
        if index > 0 and index % 12 == 0:
            installment *= 1 + step_up
        if installment > 0:
            flows.append(CashFlow(date=add_months(start, index), amount=-installment))
            invested += installment
        running_sip = (running_sip + installment) * (1 + monthly_rate)
        if _keep_on_timeline(index, months):
            market = running_sip + lumpsum_future_value(request.lumpsum, lumpsum_rate, (index + 1) / 12)
            timeline.append(
                TimelinePoint(
                    date=add_months(start, index + 1),
                    invested_value=round(invested, 2),
                    market_value=round(market, 2),
                )
            )

    if timeline:
        timeline[-1] = TimelinePoint(
            date=maturity,
            invested_value=round(total_investment, 2),
            market_value=round(total_value, 2),
        )
    flows.append(CashFlow(date=maturity, amount=total_value))

    return SIPResult(
        mode="expected",
        total_investment=round(total_investment, 2),
        initial_lumpsum=request.lumpsum,
        estimated_returns=round(total_value - total_investment, 2),
        total_value=round(total_value, 2),
        absolute_return=round(_absolute_return(total_value, total_investment), 2),
        annualized_return=request.annual_rate_percent,
        xirr=_round_percent(xirr_percent(flows)),
        timeline=timeline,
        cash_flows=flows,
    )


# -----------------------------
# Historical-replay mode
# -----------------------------


def contribution_dates(start: date, end: date, frequency: str = "monthly") -> List[date]:
    """Installment dates from ``start`` up to and including ``end``.

    Monthly dates are offset from ``start`` (not chained), so a SIP on the
    31st falls on each month's last day without drifting.
    """
    dates: List[date] = []
    index = 0
    while True:
        if frequency == "daily":
            current = start + timedelta(days=index)
        elif frequency == "weekly":
            current = start + timedelta(days=7 * index)
        else:
            current = add_months(start, index)
        if current > end:
            return dates
        dates.append(current)
        index += 1


def _annualized(value: float, invested: float, years: float) -> float:
    if years <= 0 or invested <= 0 or value <= 0:
        return 0.0
    return (math.pow(value / invested, 1 / years) - 1) * 100


def calculate_historical_sip(request: HistoricalSIPRequest) -> SIPResult:
    series = normalize_series(request.data)
    start, end = request.start_date, request.end_date
    if not series or start >= end or series[-1].date <= start:
        logger.info("Historical SIP has no usable NAV data between %s and %s", start, end)
        return _empty_result("historical", request.lumpsum)

    nav_dates = [point.date for point in series]
    schedule = contribution_dates(start, end, request.frequency)

    units = 0.0
    invested = 0.0
    flows: List[CashFlow] = []
    timeline: List[TimelinePoint] = []

    if request.lumpsum > 0:
        opening = nearest_nav(series, start, nav_dates)
        units = request.lumpsum / opening.nav
        invested = request.lumpsum
        flows.append(CashFlow(date=start, amount=-request.lumpsum))
        timeline.append(
            TimelinePoint(
                date=opening.date,
                invested_value=request.lumpsum,
                market_value=request.lumpsum,
                units=units,
                nav=opening.nav,
            )
        )

    for index, when in enumerate(schedule):
        # the lumpsum already took the first installment's slot
        if request.lumpsum > 0 and index == 0:
            continue
        if request.amount <= 0:
            continue
        point = nearest_nav(series, when, nav_dates)
        units += request.amount / point.nav
        invested += request.amount
        flows.append(CashFlow(date=when, amount=-request.amount))
        if _keep_on_timeline(index, len(schedule)):
            timeline.append(
                TimelinePoint(
                    date=point.date,
                    invested_value=round(invested, 2),
                    market_value=round(units * point.nav, 2),
                    units=units,
                    nav=point.nav,
                )
            )

    closing = nearest_nav(series, end, nav_dates)
    total_value = units * closing.nav
    if timeline:
        timeline[-1] = TimelinePoint(
            date=closing.date,
            invested_value=round(invested, 2),
            market_value=round(total_value, 2),
            units=units,
            nav=closing.nav,
        )
    flows.append(CashFlow(date=end, amount=total_value))

    years = (end - start).days / 365
    return SIPResult(
        mode="historical",
        total_investment=round(invested, 2),
        initial_lumpsum=request.lumpsum,
        estimated_returns=round(total_value - invested, 2),
        total_value=round(total_value, 2),
        absolute_return=round(_absolute_return(total_value, invested), 2),
        annualized_return=round(_annualized(total_value, invested, years), 2),
        xirr=_round_percent(xirr_percent(flows)),
        total_units=round(units, 4),
        end_nav=round(closing.nav, 4),
        timeline=timeline,
        cash_flows=flows,
    )


# -----------------------------
# Multi-SIP portfolio with a maturity date
# -----------------------------


def _months_between(start: date, end: date) -> int:
    return max(0, math.floor((end - start).days / DAYS_PER_MONTH))


def calculate_sip_portfolio(request: SIPPortfolioRequest) -> SIPPortfolioResult:
    """Value several SIPs at a common maturity date.

    Each stream contributes between its own dates, then keeps compounding at
    its own rate until maturity. Streams with invalid inputs are skipped.
    """
    maturity = request.maturity_date
    breakdown: List[SIPStreamBreakdown] = []

    for index, stream in enumerate(request.streams):
        monthly_rate = stream.annual_rate_percent / 100 / 12
        if stream.monthly_amount <= 0 or monthly_rate <= 0:
            continue
        if stream.start_date >= stream.end_date or stream.end_date > maturity:
            logger.info("Skipping SIP stream %d with invalid dates", index)
            continue

        sip_months = _months_between(stream.start_date, stream.end_date)
        growth_months = _months_between(stream.end_date, maturity)
        if sip_months <= 0:
            continue

        sip_value, invested = sip_value_and_investment(
            stream.monthly_amount, monthly_rate, sip_months, stream.step_up_rate
        )
        final_value = sip_value * (1 + monthly_rate) ** growth_months
        breakdown.append(
            SIPStreamBreakdown(
                index=index,
                monthly_amount=stream.monthly_amount,
                months=sip_months,
                investment=round(invested, 2),
                future_value=round(final_value, 2),
                returns=round(final_value - invested, 2),
                step_up_rate_percent=stream.step_up_rate * 100,
            )
        )

    total_investment = sum(row.investment for row in breakdown)
    total_value = sum(row.future_value for row in breakdown)
    return SIPPortfolioResult(
        total_investment=round(total_investment, 2),
        estimated_returns=round(total_value - total_investment, 2),
        total_value=round(total_value, 2),
        breakdown=breakdown,
    )


# -----------------------------
# Same SIP across several funds
# -----------------------------


def replay_fund_sip(
    series: Sequence[NAVPoint], monthly_amount: float, lumpsum: float = 0.0
) -> Tuple[float, float, float, List[CashFlow], List[TimelinePoint]]:
    """Monthly SIP over the whole series; returns units, invested, end NAV, flows, timeline.

    A lumpsum is invested on the first NAV date and the SIP starts a month later.
    """
    nav_dates = [point.date for point in series]
    first, last = series[0], series[-1]
    units = 0.0
    invested = 0.0
    flows: List[CashFlow] = []
    timeline: List[TimelinePoint] = []

    if lumpsum > 0:
        units = lumpsum / first.nav
        invested = lumpsum
        flows.append(CashFlow(date=first.date, amount=-lumpsum))
        timeline.append(
            TimelinePoint(date=first.date, invested_value=lumpsum, market_value=lumpsum, units=units, nav=first.nav)
        )

    offset = 1 if lumpsum > 0 else 0
    schedule = contribution_dates(add_months(first.date, offset), last.date)
    for when in schedule:
        point = nearest_nav(series, when, nav_dates)
        units += monthly_amount / point.nav
        invested += monthly_amount
        flows.append(CashFlow(date=when, amount=-monthly_amount))
        timeline.append(
            TimelinePoint(
                date=point.date,
                invested_value=round(invested, 2),
                market_value=round(units * point.nav, 2),
                units=units,
                nav=point.nav,
            )
        )

    flows.append(CashFlow(date=last.date, amount=units * last.nav))
    return units, invested, last.nav, flows, timeline


def compare_fund_sips(request: SIPCompareRequest) -> List[FundSIPComparison]:
    results: List[FundSIPComparison] = []
    for fund in request.funds:
        series = select_series(fund.data, request.period, request.start_date, request.end_date)
        if not series:
            results.append(
                FundSIPComparison(
                    scheme_code=fund.scheme_code,
                    scheme_name=fund.scheme_name,
                    total_investment=0.0,
                    total_value=0.0,
                    total_units=0.0,
                    end_nav=0.0,
                    absolute_return=0.0,
                )
            )
            continue

        units, invested, end_nav, flows, timeline = replay_fund_sip(
            series, request.monthly_amount, request.lumpsum
        )
        total_value = units * end_nav
        results.append(
            FundSIPComparison(
                scheme_code=fund.scheme_code,
                scheme_name=fund.scheme_name,
                total_investment=round(invested, 2),
                total_value=round(total_value, 2),
                total_units=round(units, 4),
                end_nav=end_nav,
                absolute_return=round(_absolute_return(total_value, invested), 2),
                xirr=_round_percent(xirr_percent(flows)),
                timeline=timeline,
            )
        )
    return results
