from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Optional

from fundcalc.schemas.retirement import (
    GoalAnalysis,
    RetirementPlanRequest,
    RetirementPlanResult,
    SustainabilityAnalysis,
    YearlyBreakdownRow,
)
from fundcalc.schemas.sip import ContributionStream, LumpsumEntry

logger = logging.getLogger(__name__)

HORIZON_YEARS = 50
# share of a withdrawal assumed to be realized gains
GAINS_SHARE = 0.5
DEFAULT_GROWTH_RATE = 0.12
MIN_SUSTAINABILITY_AGE = 80
LIFETIME_AGE = 90
MAX_FIRE_AGE = 100


def estimate_ltcg_tax(withdrawal: float, tax_rate: float, exemption: float) -> float:
    """Long-term capital gains tax on a withdrawal, treating half of it as gains."""
    gains = withdrawal * GAINS_SHARE
    return max(0.0, gains - exemption) * tax_rate


def _sip_active(sip: ContributionStream, year: int) -> bool:
    return sip.start_date.year <= year <= sip.end_date.year


def _sip_annual_amount(sip: ContributionStream, year: int) -> float:
    years_since_start = year - sip.start_date.year
    return sip.monthly_amount * 12 * (1 + sip.step_up_rate) ** years_since_start


def yearly_investment(plan: RetirementPlanRequest, year: int) -> float:
    lumpsum = sum(entry.amount for entry in plan.lumpsums if entry.investment_date.year == year)
    sip = sum(_sip_annual_amount(s, year) for s in plan.sips if _sip_active(s, year))
    return lumpsum + sip


def accumulation_rate(lumpsums: List[LumpsumEntry], sips: List[ContributionStream], year: int) -> float:
    """Plain average of the rates of the streams active in ``year``.

    A lumpsum stays active from its investment year on; a SIP only while it
    is contributing.
    """
    rates = [entry.annual_rate_percent for entry in lumpsums if entry.investment_date.year <= year]
    rates += [s.annual_rate_percent for s in sips if _sip_active(s, year)]
    if not rates:
        return DEFAULT_GROWTH_RATE
    return sum(rates) / len(rates) / 100


def monthly_goal_spend(plan: RetirementPlanRequest, age: int) -> float:
    return sum(goal.monthly_amount for goal in plan.goals if goal.is_active(age))


def project_corpus(plan: RetirementPlanRequest) -> List[YearlyBreakdownRow]:
    """
    Build the year-by-year corpus table over a fixed horizon.

    Per year, before the retirement (SWP start) age:
      1) add lumpsums dated this year and twelve months of each running SIP
      2) grow the whole balance at the average rate of invested streams
      3) subtract one-time withdrawals and their LTCG estimate
    From the retirement age on:
      1) grow the balance at the SWP rate
      2) subtract twelve months of every active goal plus one-time
         withdrawals, and the LTCG estimate on the total

    Stops early once the corpus is exhausted after retirement.
    """
    start_year = plan.start_year or date.today().year
    swp_rate = plan.swp_annual_rate_percent / 100

    corpus = 0.0
    rows: List[YearlyBreakdownRow] = []

    for offset in range(HORIZON_YEARS):
        age = plan.current_age + offset
        year = start_year + offset
        starting = corpus

        one_time = sum(w.amount for w in plan.one_time_withdrawals if w.date.year == year)

        if age < plan.retirement_age:
            investment = yearly_investment(plan, year)
            growth = (starting + investment) * accumulation_rate(plan.lumpsums, plan.sips, year)
            goal_withdrawals = 0.0
        else:
            investment = 0.0
            growth = starting * swp_rate
            goal_withdrawals = monthly_goal_spend(plan, age) * 12

        withdrawals = goal_withdrawals + one_time
        tax = estimate_ltcg_tax(withdrawals, plan.ltcg_tax_rate, plan.ltcg_exemption)
        ending = starting + investment + growth - withdrawals - tax
        corpus = max(0.0, ending)

        rows.append(
            YearlyBreakdownRow(
                year=year,
                age=age,
                starting_corpus=round(starting, 2),
                investment=round(investment, 2),
                growth=round(growth, 2),
                ltcg_tax=round(tax, 2),
                withdrawals=round(withdrawals, 2),
                one_time_withdrawals=round(one_time, 2),
                ending_corpus=round(corpus, 2),
            )
        )

        if age >= plan.retirement_age and corpus <= 0:
            break

    return rows


def corpus_at_age(rows: List[YearlyBreakdownRow], age: int) -> float:
    for row in rows:
        if row.age == age:
            return row.starting_corpus
    return rows[-1].ending_corpus if rows else 0.0


def total_monthly_needs(plan: RetirementPlanRequest) -> float:
    """Sum of goals that have started by the retirement age."""
    return sum(goal.monthly_amount for goal in plan.goals if goal.start_age <= plan.retirement_age)


def estimate_fire_age(
    plan: RetirementPlanRequest, corpus: float, monthly_needs: float
) -> Optional[int]:
    """Approximate age at which passive income covers ``monthly_needs``.

    When the corpus falls short, the gap to ``needs * 12 / swp_rate`` is
    closed by continuing the average SIP at the average SIP rate (annuity
    inversion, growth of the existing corpus ignored). ``None`` when there is
    no SIP to extend or the estimate passes ``MAX_FIRE_AGE``.
    """
    swp_rate = plan.swp_annual_rate_percent / 100
    if corpus * swp_rate / 12 >= monthly_needs:
        return plan.retirement_age

    sips = [s for s in plan.sips if s.monthly_amount > 0 and s.annual_rate_percent > 0]
    if not sips:
        return None
    amount = sum(s.monthly_amount for s in sips) / len(sips)
    monthly_rate = sum(s.annual_rate_percent for s in sips) / len(sips) / 100 / 12

    gap = monthly_needs * 12 / swp_rate - corpus
    months = math.log(1 + gap * monthly_rate / (amount * (1 + monthly_rate))) / math.log(1 + monthly_rate)
    fire_age = plan.retirement_age + math.ceil(months / 12)
    if fire_age > MAX_FIRE_AGE:
        logger.debug("FIRE age estimate %d is past %d", fire_age, MAX_FIRE_AGE)
        return None
    return fire_age


def analyse_goals(plan: RetirementPlanRequest, passive_income: float) -> List[GoalAnalysis]:
    # each goal is checked on its own against the whole passive income
    return [
        GoalAnalysis(
            label=goal.label,
            monthly_amount=goal.monthly_amount,
            start_age=goal.start_age,
            end_age=None if goal.duration_years is None else goal.start_age + goal.duration_years,
            is_affordable=passive_income >= goal.monthly_amount,
        )
        for goal in plan.goals
    ]


def analyse_sustainability(
    plan: RetirementPlanRequest, rows: List[YearlyBreakdownRow]
) -> SustainabilityAnalysis:
    min_age = max(MIN_SUSTAINABILITY_AGE, plan.retirement_age + 20)
    depletion_age = next(
        (row.age for row in rows if row.age >= plan.retirement_age and row.ending_corpus <= 0),
        None,
    )
    has_lifetime_goal = any(goal.duration_years is None for goal in plan.goals)
    return SustainabilityAnalysis(
        min_sustainability_age=min_age,
        is_sustainable_to_min_age=depletion_age is None or depletion_age > min_age,
        is_sustainable_for_lifetime=(
            depletion_age is None or depletion_age > LIFETIME_AGE if has_lifetime_goal else True
        ),
        corpus_depletion_age=depletion_age,
    )


def plan_retirement(plan: RetirementPlanRequest) -> RetirementPlanResult:
    rows = project_corpus(plan)
    corpus = corpus_at_age(rows, plan.retirement_age)
    passive_income = corpus * (plan.swp_annual_rate_percent / 100) / 12
    needs = total_monthly_needs(plan)

    return RetirementPlanResult(
        corpus_at_retirement=round(corpus, 2),
        total_investment=round(sum(row.investment for row in rows), 2),
        total_ltcg_tax=round(sum(row.ltcg_tax for row in rows), 2),
        total_monthly_needs=round(needs, 2),
        monthly_passive_income=round(passive_income, 2),
        is_fire_achievable=passive_income >= needs,
        fire_age=estimate_fire_age(plan, corpus, needs),
        goals=analyse_goals(plan, passive_income),
        sustainability=analyse_sustainability(plan, rows),
        yearly_breakdown=rows,
    )


__all__ = [
    "estimate_ltcg_tax",
    "yearly_investment",
    "accumulation_rate",
    "project_corpus",
    "corpus_at_age",
    "total_monthly_needs",
    "estimate_fire_age",
    "analyse_goals",
    "analyse_sustainability",
    "plan_retirement",
]
