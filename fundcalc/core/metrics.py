"""Historical return and risk metrics for a NAV series."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from fundcalc.core.dates import sort_chronological
from fundcalc.schemas.metrics import FundMetrics, FundMetricsComparison
from fundcalc.schemas.series import NAVPoint

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25
TRADING_DAYS_PER_YEAR = 252


def absolute_return(first_nav: float, last_nav: float) -> float:
    return (last_nav - first_nav) / first_nav * 100


def cagr(first_nav: float, last_nav: float, years: float) -> Optional[float]:
    """Compound annual growth rate in percent over ``years`` (fractional)."""
    if years <= 0:
        return None
    return (math.pow(last_nav / first_nav, 1 / years) - 1) * 100


def annualized_return(first_nav: float, last_nav: float, days: int) -> Optional[float]:
    if days <= 0:
        return None
    return (math.pow(last_nav / first_nav, DAYS_PER_YEAR / days) - 1) * 100


def daily_returns(navs: Sequence[float]) -> List[float]:
    return [(navs[i] - navs[i - 1]) / navs[i - 1] for i in range(1, len(navs))]


def volatility(navs: Sequence[float]) -> Optional[float]:
    """Annualized standard deviation of daily returns, in percent.

    Needs at least three NAVs. The variance is taken over the N daily
    returns, not N - 1.
    """
    if len(navs) < 3:
        return None
    returns = daily_returns(navs)
    mean = sum(returns) / len(returns)
    variance = sum((value - mean) ** 2 for value in returns) / len(returns)
    return math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100


def max_drawdown(navs: Sequence[float]) -> float:
    """Largest fall from a running peak, as a positive percentage."""
    if len(navs) < 3:
        return 0.0
    peak = navs[0]
    worst = 0.0
    for nav in navs[1:]:
        peak = max(peak, nav)
        worst = max(worst, (peak - nav) / peak)
    return worst * 100


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''}"


def period_label(days: int, delta: relativedelta) -> str:
    months = delta.years * 12 + delta.months
    if delta.years > 0:
        label = _plural(delta.years, "year")
        if months % 12 > 0:
            label += " " + _plural(months % 12, "month")
        return label
    if months > 0:
        return _plural(months, "month")
    return _plural(days, "day")


def calculate_fund_metrics(series: Iterable[NAVPoint]) -> FundMetrics:
    """Summarize a NAV series; fewer than two points is reported, not raised."""
    points = sort_chronological(series)
    if len(points) < 2:
        logger.info("Fund metrics requested for %d NAV point(s)", len(points))
        return FundMetrics(insufficient_data=True)

    first, last = points[0], points[-1]
    days = (last.date - first.date).days
    delta = relativedelta(last.date, first.date)
    navs = [point.nav for point in points]

    years = days / DAYS_PER_YEAR
    # calendar years decide which figure applies; days drive the exponent
    whole_year = delta.years >= 1
    return FundMetrics(
        start_date=first.date,
        end_date=last.date,
        start_nav=first.nav,
        end_nav=last.nav,
        days=days,
        period_label=period_label(days, delta),
        absolute_return=absolute_return(first.nav, last.nav),
        cagr=cagr(first.nav, last.nav, years) if whole_year else None,
        annualized_return=None if whole_year else annualized_return(first.nav, last.nav, days),
        volatility=volatility(navs),
        max_drawdown=max_drawdown(navs),
    )


def compare_funds(funds: Iterable[Tuple[int, str, Sequence[NAVPoint]]]) -> List[FundMetricsComparison]:
    return [
        FundMetricsComparison(
            scheme_code=scheme_code,
            scheme_name=scheme_name,
            metrics=calculate_fund_metrics(series),
        )
        for scheme_code, scheme_name, series in funds
    ]
