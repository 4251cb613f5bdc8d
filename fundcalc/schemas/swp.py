"""Data contracts for SWP and accumulation-then-withdrawal simulations."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fundcalc.schemas.sip import StepUp


class WithdrawalStream(BaseModel):
    """Monthly withdrawal from a corpus growing at an annual rate."""

    model_config = ConfigDict(extra="forbid")

    monthly_amount: float = Field(..., gt=0)
    annual_rate_percent: float = Field(..., gt=0, le=100)
    step_up: Optional[StepUp] = None

    @property
    def step_up_rate(self) -> float:
        return self.step_up.rate if self.step_up else 0.0


class SWPRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    corpus: float = Field(..., gt=0)
    withdrawal: WithdrawalStream


class SWPYearRow(BaseModel):
    year: int
    starting_corpus: float
    monthly_withdrawal: float
    total_withdrawals: float
    interest_earned: float
    ending_corpus: float


class SWPResult(BaseModel):
    duration: str
    is_indefinite: bool
    depleted: bool
    years_lasted: int
    depletion_year: Optional[int] = None
    yearly_breakdown: List[SWPYearRow]


class LifecycleRequest(BaseModel):
    """Lumpsum + SIP accumulation followed by an SWP."""

    model_config = ConfigDict(extra="forbid")

    lumpsum: float = Field(0.0, ge=0)
    monthly_sip: float = Field(0.0, ge=0)
    accumulation_years: int = Field(..., ge=1, le=100)
    growth_rate_percent: float = Field(..., gt=0, le=100)
    sip_step_up: Optional[StepUp] = None
    withdrawal: WithdrawalStream


class LifecycleResult(BaseModel):
    corpus: float
    swp: SWPResult
