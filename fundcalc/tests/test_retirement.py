import math
from datetime import date

import pytest

from fundcalc.core.retirement import (
    accumulation_rate,
    estimate_ltcg_tax,
    plan_retirement,
    project_corpus,
)
from fundcalc.schemas.retirement import RetirementGoal, RetirementPlanRequest
from fundcalc.schemas.sip import ContributionStream, LumpsumEntry, StepUp


def lumpsum_plan(**overrides) -> RetirementPlanRequest:
    """Retire at 32 on a single 10L lumpsum made at 30."""
    params = dict(
        current_age=30,
        retirement_age=32,
        swp_annual_rate_percent=8,
        start_year=2025,
        lumpsums=[LumpsumEntry(amount=1_000_000, investment_date=date(2025, 4, 1), annual_rate_percent=10)],
        goals=[RetirementGoal(label="Household", monthly_amount=5000, start_age=32)],
    )
    params.update(overrides)
    return RetirementPlanRequest(**params)


def sip_plan(step_up=None, goals=None) -> RetirementPlanRequest:
    return RetirementPlanRequest(
        current_age=30,
        retirement_age=35,
        swp_annual_rate_percent=8,
        start_year=2025,
        sips=[
            ContributionStream(
                monthly_amount=10000,
                start_date=date(2025, 1, 1),
                end_date=date(2029, 12, 31),
                annual_rate_percent=12,
                step_up=step_up,
            )
        ],
        goals=goals or [],
    )


def test_ltcg_applies_only_above_exemption():
    assert estimate_ltcg_tax(200_000, 0.125, 125_000) == 0.0
    assert math.isclose(estimate_ltcg_tax(600_000, 0.125, 125_000), 21_875.0)


def test_accumulation_grows_at_the_average_invested_rate():
    rows = project_corpus(lumpsum_plan())

    assert rows[0].investment == 1_000_000
    assert rows[0].growth == pytest.approx(100_000)
    assert rows[1].ending_corpus == pytest.approx(1_210_000)
    # retired: SWP rate on the starting balance, goal debited
    assert rows[2].growth == pytest.approx(1_210_000 * 0.08)
    assert rows[2].withdrawals == 60_000
    assert rows[2].ltcg_tax == 0


def test_rate_defaults_before_any_investment():
    assert accumulation_rate([], [], 2025) == 0.12


def test_finished_sip_leaves_the_rate_average():
    lumpsums = [LumpsumEntry(amount=100_000, investment_date=date(2025, 1, 1), annual_rate_percent=10)]
    sips = [
        ContributionStream(
            monthly_amount=5000,
            start_date=date(2025, 1, 1),
            end_date=date(2026, 12, 31),
            annual_rate_percent=20,
        )
    ]

    assert math.isclose(accumulation_rate(lumpsums, sips, 2026), 0.15)
    assert math.isclose(accumulation_rate(lumpsums, sips, 2027), 0.10)


def test_plan_reports_fire_when_passive_income_covers_needs():
    result = plan_retirement(lumpsum_plan())

    assert result.corpus_at_retirement == pytest.approx(1_210_000)
    assert result.monthly_passive_income == pytest.approx(1_210_000 * 0.08 / 12, abs=0.01)
    assert result.is_fire_achievable
    assert result.fire_age == 32
    assert len(result.yearly_breakdown) == 50
    assert result.sustainability.is_sustainable_for_lifetime


def test_goals_are_judged_individually_but_debited_together():
    goals = [
        RetirementGoal(label="Household", monthly_amount=5000, start_age=32),
        RetirementGoal(label="Travel", monthly_amount=10000, start_age=40),
    ]

    result = plan_retirement(lumpsum_plan(goals=goals))

    household, travel = result.goals
    assert household.is_affordable
    assert not travel.is_affordable
    assert household.end_age is None
    # travel starts after retirement, so it is not part of the needs at retirement
    assert result.total_monthly_needs == 5000

    sustainability = result.sustainability
    assert sustainability.corpus_depletion_age == 56
    assert sustainability.min_sustainability_age == 80
    assert not sustainability.is_sustainable_to_min_age
    assert not sustainability.is_sustainable_for_lifetime


def test_projection_stops_once_corpus_is_exhausted():
    goals = [RetirementGoal(label="Everything", monthly_amount=50000, start_age=32)]

    rows = plan_retirement(lumpsum_plan(goals=goals)).yearly_breakdown

    assert rows[-1].ending_corpus == 0
    assert all(row.ending_corpus > 0 for row in rows[:-1])
    assert len(rows) < 50


def test_fixed_term_goal_stops_withdrawing():
    goals = [RetirementGoal(label="School fees", monthly_amount=5000, start_age=32, duration_years=3)]

    rows = plan_retirement(lumpsum_plan(goals=goals)).yearly_breakdown

    by_age = {row.age: row for row in rows}
    assert by_age[34].withdrawals == 60_000
    assert by_age[35].withdrawals == 0


def test_sip_step_up_raises_yearly_investment():
    flat = plan_retirement(sip_plan())
    stepped = plan_retirement(sip_plan(step_up=StepUp(enabled=True, annual_rate_percent=10)))

    assert flat.total_investment == pytest.approx(600_000)
    assert stepped.total_investment == pytest.approx(120_000 * (1 + 1.1 + 1.21 + 1.331 + 1.4641))


def test_fire_age_extends_the_sip_when_corpus_falls_short():
    goals = [RetirementGoal(label="Lifestyle", monthly_amount=100_000, start_age=35)]

    result = plan_retirement(sip_plan(goals=goals))

    assert not result.is_fire_achievable
    assert result.fire_age is not None
    assert 35 < result.fire_age <= 100


def test_fire_age_unknown_without_sips():
    goals = [RetirementGoal(label="Lifestyle", monthly_amount=100_000, start_age=32)]

    result = plan_retirement(lumpsum_plan(goals=goals))

    assert result.fire_age is None


def test_retirement_must_follow_current_age():
    with pytest.raises(ValueError):
        RetirementPlanRequest(current_age=40, retirement_age=40, swp_annual_rate_percent=8)
