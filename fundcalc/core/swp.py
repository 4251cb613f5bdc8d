"""Systematic withdrawal plan (SWP) simulation."""

from __future__ import annotations

import logging
from typing import List

from fundcalc.core.sip import lumpsum_future_value, sip_value_and_investment
from fundcalc.schemas.swp import (
    LifecycleRequest,
    LifecycleResult,
    SWPRequest,
    SWPResult,
    SWPYearRow,
)

logger = logging.getLogger(__name__)

MAX_YEARS = 50
DISPLAY_YEARS = 25


def is_indefinite(corpus: float, monthly_withdrawal: float, annual_rate: float, step_up_rate: float = 0.0) -> bool:
    """Withdrawal never exceeds the first month's interest and never grows.

    Judged from the initial corpus only, without running the simulation.
    """
    return step_up_rate <= 0 and monthly_withdrawal <= corpus * (annual_rate / 12)


def simulate_swp(
    corpus: float,
    monthly_withdrawal: float,
    annual_rate: float,
    step_up_rate: float = 0.0,
    max_years: int = MAX_YEARS,
    display_years: int = DISPLAY_YEARS,
) -> SWPResult:
    """Year-by-year corpus under withdrawals and annual growth.

    Per year: interest on the starting corpus, twelve withdrawals at the
    current monthly amount, then the step-up (if any) for the next year.
    Stops once the corpus is exhausted or after ``max_years``.
    """
    current = corpus
    withdrawal = monthly_withdrawal
    rows: List[SWPYearRow] = []

    for year in range(1, max_years + 1):
        starting = current
        annual_withdrawals = withdrawal * 12
        interest = current * annual_rate
        ending = current + interest - annual_withdrawals

        rows.append(
            SWPYearRow(
                year=year,
                starting_corpus=round(starting, 2),
                monthly_withdrawal=round(withdrawal, 2),
                total_withdrawals=round(annual_withdrawals, 2),
                interest_earned=round(interest, 2),
                ending_corpus=round(max(0.0, ending), 2),
            )
        )

        current = ending
        if current <= 0:
            break

        if step_up_rate > 0:
            withdrawal *= 1 + step_up_rate

    indefinite = is_indefinite(corpus, monthly_withdrawal, annual_rate, step_up_rate)
    depleted = current <= 0
    years = len(rows)

    if indefinite:
        duration = "Corpus likely to last indefinitely (withdrawal ≤ monthly interest)"
    elif not depleted:
        duration = f"Corpus projected to last more than {years} years"
    else:
        duration = f"Corpus will last approximately {years} years"

    return SWPResult(
        duration=duration,
        is_indefinite=indefinite,
        depleted=depleted,
        years_lasted=years,
        depletion_year=years if depleted else None,
        yearly_breakdown=rows[:display_years],
    )


def calculate_swp(request: SWPRequest) -> SWPResult:
    stream = request.withdrawal
    return simulate_swp(
        corpus=request.corpus,
        monthly_withdrawal=stream.monthly_amount,
        annual_rate=stream.annual_rate_percent / 100,
        step_up_rate=stream.step_up_rate,
    )


def accumulated_corpus(request: LifecycleRequest) -> float:
    growth = request.growth_rate_percent / 100
    step_up = request.sip_step_up.rate if request.sip_step_up else 0.0
    lumpsum_value = lumpsum_future_value(request.lumpsum, growth, request.accumulation_years)
    sip_value, _ = sip_value_and_investment(
        request.monthly_sip, growth / 12, request.accumulation_years * 12, step_up
    )
    return lumpsum_value + sip_value


def simulate_lifecycle(request: LifecycleRequest) -> LifecycleResult:
    """Accumulate a lumpsum and a SIP, then draw the corpus down with an SWP."""
    corpus = accumulated_corpus(request)
    if corpus <= 0:
        logger.info("Lifecycle accumulation produced no corpus")
    stream = request.withdrawal
    swp = simulate_swp(
        corpus=corpus,
        monthly_withdrawal=stream.monthly_amount,
        annual_rate=stream.annual_rate_percent / 100,
        step_up_rate=stream.step_up_rate,
    )
    return LifecycleResult(corpus=round(corpus, 2), swp=swp)
