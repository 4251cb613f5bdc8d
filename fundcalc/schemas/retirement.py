"""Data contracts for the combined lifecycle / retirement planner."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fundcalc.schemas.sip import ContributionStream, LumpsumEntry


class OneTimeWithdrawal(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = Field(..., ge=0)
    date: date
    label: str = ""


class RetirementGoal(BaseModel):
    """Monthly spend starting at an age; ``duration_years=None`` means lifetime."""

    model_config = ConfigDict(extra="forbid")

    label: str = ""
    monthly_amount: float = Field(..., ge=0)
    start_age: int = Field(..., ge=0, le=120)
    duration_years: Optional[int] = Field(None, ge=1, le=120)

    def is_active(self, age: int) -> bool:
        if age < self.start_age:
            return False
        return self.duration_years is None or age < self.start_age + self.duration_years


class RetirementPlanRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_age: int = Field(..., ge=10, le=100)
    retirement_age: int = Field(..., ge=11, le=110)
    swp_annual_rate_percent: float = Field(..., gt=0, le=100)
    start_year: Optional[int] = Field(
        None, ge=1900, le=2200, description="Calendar year of the first row; defaults to today."
    )

    lumpsums: List[LumpsumEntry] = Field(default_factory=list)
    sips: List[ContributionStream] = Field(default_factory=list)
    one_time_withdrawals: List[OneTimeWithdrawal] = Field(default_factory=list)
    goals: List[RetirementGoal] = Field(default_factory=list)

    ltcg_tax_rate: float = Field(0.125, ge=0, le=1)
    ltcg_exemption: float = Field(125000.0, ge=0)

    @model_validator(mode="after")
    def ensure_validity(self) -> "RetirementPlanRequest":
        if self.retirement_age <= self.current_age:
            raise ValueError("retirement_age must be greater than current_age")
        return self


class YearlyBreakdownRow(BaseModel):
    year: int
    age: int
    starting_corpus: float
    investment: float
    growth: float
    ltcg_tax: float
    withdrawals: float
    one_time_withdrawals: float
    ending_corpus: float


class GoalAnalysis(BaseModel):
    label: str
    monthly_amount: float
    start_age: int
    end_age: Optional[int] = None
    is_affordable: bool


class SustainabilityAnalysis(BaseModel):
    min_sustainability_age: int
    is_sustainable_to_min_age: bool
    is_sustainable_for_lifetime: bool
    corpus_depletion_age: Optional[int] = None


class RetirementPlanResult(BaseModel):
    corpus_at_retirement: float
    total_investment: float
    total_ltcg_tax: float
    total_monthly_needs: float
    monthly_passive_income: float
    is_fire_achievable: bool
    fire_age: Optional[int] = None
    goals: List[GoalAnalysis]
    sustainability: SustainabilityAnalysis
    yearly_breakdown: List[YearlyBreakdownRow]
