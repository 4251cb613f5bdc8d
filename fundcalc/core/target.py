"""Inverse SIP problems: required installment or time to reach a target."""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Callable, Iterable, Optional

from fundcalc.core.dates import add_months
from fundcalc.core.sip import sip_future_value
from fundcalc.schemas.sip import LumpsumEntry
from fundcalc.schemas.target import TargetSIPRequest, TargetSIPResult

logger = logging.getLogger(__name__)

MAX_MONTHS = 600
DAYS_PER_YEAR = 365.25
# lets a solved installment reproduce its own horizon despite float rounding
REL_TOLERANCE = 1e-9


def lumpsums_future_value(lumpsums: Iterable[LumpsumEntry], target_date: date) -> float:
    """Value of every lumpsum on ``target_date``; later-dated entries add nothing."""
    total = 0.0
    for entry in lumpsums:
        days = (target_date - entry.investment_date).days
        if days < 0:
            continue
        total += entry.amount * (1 + entry.annual_rate_percent / 100) ** (days / DAYS_PER_YEAR)
    return total


def lumpsums_invested(lumpsums: Iterable[LumpsumEntry], target_date: date) -> float:
    return sum(entry.amount for entry in lumpsums if entry.investment_date <= target_date)


def required_monthly_sip(target: float, annual_rate: float, months: int, lumpsum_fv: float = 0.0) -> float:
    """Annuity-due installment that grows to ``target - lumpsum_fv`` in ``months``."""
    adjusted = target - lumpsum_fv
    if adjusted <= 0:
        return 0.0
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return adjusted / months
    return adjusted / (((1 + monthly_rate) ** months - 1) / monthly_rate * (1 + monthly_rate))


def months_to_target(
    target: float,
    monthly_amount: float,
    annual_rate: float,
    lumpsum_fv_at: Optional[Callable[[int], float]] = None,
    max_months: int = MAX_MONTHS,
) -> Optional[int]:
    """First month count whose SIP value covers the lumpsum-adjusted target.

    ``lumpsum_fv_at(m)`` gives the lumpsum value after ``m`` months. Returns
    ``None`` when the target is not reached within ``max_months``.
    """
    monthly_rate = annual_rate / 12
    for months in range(1, max_months + 1):
        adjusted = target - (lumpsum_fv_at(months) if lumpsum_fv_at else 0.0)
        if adjusted <= 0:
            return months
        value = sip_future_value(monthly_amount, monthly_rate, months)
        if value >= adjusted or math.isclose(value, adjusted, rel_tol=REL_TOLERANCE):
            return months
    logger.debug("Target %.2f not reached within %d months", target, max_months)
    return None


def solve_target_sip(request: TargetSIPRequest) -> TargetSIPResult:
    start = request.start_date or date.today()
    annual_rate = request.annual_rate_percent / 100

    def lumpsum_fv_at(months: int) -> float:
        return lumpsums_future_value(request.lumpsums, add_months(start, months))

    if request.mode == "amount_to_target":
        months = request.months
        lumpsum_fv = lumpsum_fv_at(months)
        # rounded up to the paisa so the reported installment still reaches the target
        required = required_monthly_sip(request.target_amount, annual_rate, months, lumpsum_fv)
        monthly = math.ceil(required * 100) / 100
    else:
        monthly = request.monthly_amount
        months = months_to_target(request.target_amount, monthly, annual_rate, lumpsum_fv_at)
        if months is None:
            return TargetSIPResult(
                mode=request.mode,
                target_amount=request.target_amount,
                lumpsum_future_value=0.0,
                monthly_amount=monthly,
                total_investment=0.0,
                total_returns=0.0,
                found=False,
                annual_rate_percent=request.annual_rate_percent,
            )
        lumpsum_fv = lumpsum_fv_at(months)

    maturity = add_months(start, months)
    invested = monthly * months + lumpsums_invested(request.lumpsums, maturity)
    final_value = sip_future_value(monthly, annual_rate / 12, months) + lumpsum_fv
    return TargetSIPResult(
        mode=request.mode,
        target_amount=request.target_amount,
        lumpsum_future_value=round(lumpsum_fv, 2),
        monthly_amount=round(monthly, 2),
        months=months,
        years=round(months / 12, 2),
        total_investment=round(invested, 2),
        total_returns=round(final_value - invested, 2),
        found=True,
        annual_rate_percent=request.annual_rate_percent,
    )
