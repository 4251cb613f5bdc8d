"""XIRR (extended internal rate of return) for irregularly dated cash flows."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from fundcalc.schemas.series import CashFlow

logger = logging.getLogger(__name__)

DEFAULT_GUESS = 0.10
MAX_ITERATIONS = 100
TOLERANCE = 1e-6
DAYS_PER_YEAR = 365

# (1 + rate) must stay positive for fractional exponents.
MIN_RATE = -0.999
MAX_RATE = 10.0

Terms = List[Tuple[float, float]]


def year_fractions(flows: Sequence[CashFlow]) -> Terms:
    """``(amount, years since the earliest flow)`` pairs."""
    ordered = sorted(flows, key=lambda flow: flow.date)
    first = ordered[0].date
    return [(flow.amount, (flow.date - first).days / DAYS_PER_YEAR) for flow in ordered]


def npv(rate: float, terms: Terms) -> float:
    return sum(amount / (1 + rate) ** years for amount, years in terms)


def npv_derivative(rate: float, terms: Terms) -> float:
    return sum(-years * amount / (1 + rate) ** (years + 1) for amount, years in terms)


def has_sign_change(flows: Sequence[CashFlow]) -> bool:
    return any(flow.amount > 0 for flow in flows) and any(flow.amount < 0 for flow in flows)


def _newton(terms: Terms, guess: float, max_iterations: int, tolerance: float) -> Tuple[float, bool]:
    rate = guess
    for _ in range(max_iterations):
        try:
            value = npv(rate, terms)
            if abs(value) < tolerance:
                return rate, True
            slope = npv_derivative(rate, terms)
        except (OverflowError, ZeroDivisionError):
            logger.debug("XIRR evaluation overflowed at rate %s", rate)
            return rate, False
        if abs(slope) < tolerance:
            logger.debug("XIRR derivative vanished at rate %s", rate)
            return rate, False
        new_rate = min(max(rate - value / slope, MIN_RATE), MAX_RATE)
        if abs(new_rate - rate) < tolerance:
            return new_rate, True
        rate = new_rate
    logger.debug("XIRR did not converge after %d iterations", max_iterations)
    return rate, False


def _bisection(
    f: Callable[[float], float], lo: float, hi: float, tolerance: float, max_iterations: int
) -> Optional[float]:
    f_lo = f(lo)
    if f_lo * f(hi) > 0:
        return None
    for _ in range(max_iterations):
        mid = (lo + hi) / 2
        f_mid = f(mid)
        if abs(f_mid) < tolerance or (hi - lo) < tolerance:
            return mid
        if f_lo * f_mid < 0:
            hi = mid
        else:
            lo, f_lo = mid, f_mid
    return (lo + hi) / 2


def xirr(
    flows: Sequence[CashFlow],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
    bracket: bool = False,
) -> Optional[float]:
    """Annualized rate (0.12 for 12%) that zeroes the NPV of ``flows``.

    Newton-Raphson from ``guess``; when it stalls the last estimate is
    returned. With ``bracket=True`` a stalled solve is retried by bisection
    over ``[MIN_RATE, MAX_RATE]``. Returns ``None`` for fewer than two flows
    or flows without both an outflow and an inflow.
    """
    if len(flows) < 2 or not has_sign_change(flows):
        return None

    terms = year_fractions(flows)
    rate, converged = _newton(terms, guess, max_iterations, tolerance)
    if converged or not bracket:
        return rate

    scale = max(sum(abs(amount) for amount, _ in terms) * tolerance, tolerance)
    try:
        if abs(npv(rate, terms)) < scale:
            return rate
        fallback = _bisection(lambda r: npv(r, terms), MIN_RATE, MAX_RATE, tolerance, 300)
    except (OverflowError, ZeroDivisionError):
        return rate
    return rate if fallback is None else fallback


def xirr_percent(flows: Sequence[CashFlow], **kwargs) -> Optional[float]:
    rate = xirr(flows, **kwargs)
    return None if rate is None else rate * 100
