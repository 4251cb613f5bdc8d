"""Data contracts for SIP and lumpsum calculations."""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fundcalc.schemas.series import CashFlow, NamedSeries, Period, RawNavPoint

Frequency = Literal["daily", "weekly", "monthly"]


class StepUp(BaseModel):
    """Annual percentage increase applied to a periodic amount."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    annual_rate_percent: float = Field(0.0, ge=0, le=100)

    @property
    def rate(self) -> float:
        """Decimal step-up rate, 0 when disabled."""
        if not self.enabled or self.annual_rate_percent <= 0:
            return 0.0
        return self.annual_rate_percent / 100


class ContributionStream(BaseModel):
    """One SIP: a monthly amount between two dates at an expected rate."""

    model_config = ConfigDict(extra="forbid")

    monthly_amount: float = Field(..., ge=0)
    start_date: date
    end_date: date
    annual_rate_percent: float = Field(..., ge=0, le=100)
    step_up: Optional[StepUp] = None

    @property
    def step_up_rate(self) -> float:
        return self.step_up.rate if self.step_up else 0.0


class LumpsumEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = Field(..., ge=0)
    investment_date: date
    annual_rate_percent: float = Field(..., ge=0, le=100)


class TimelinePoint(BaseModel):
    """Chart point: invested capital vs. market value on a date."""

    date: date
    invested_value: float
    market_value: float
    units: Optional[float] = None
    nav: Optional[float] = None


class LumpsumRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = Field(..., gt=0)
    annual_rate_percent: float = Field(..., gt=0, le=100)
    years: float = Field(..., gt=0, le=100)


class LumpsumResult(BaseModel):
    total_investment: float
    estimated_returns: float
    total_value: float


class LumpsumSIPRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lumpsum: float = Field(0.0, ge=0)
    monthly_sip: float = Field(0.0, ge=0)
    years: int = Field(..., ge=1, le=100)
    annual_rate_percent: float = Field(..., gt=0, le=100)
    step_up: Optional[StepUp] = None


class LumpsumSIPResult(BaseModel):
    lumpsum_value: float
    sip_value: float
    total_value: float
    total_investment: float
    total_returns: float


class ExpectedSIPRequest(BaseModel):
    """SIP projected at a constant expected rate."""

    model_config = ConfigDict(extra="forbid")

    monthly_amount: float = Field(0.0, ge=0)
    annual_rate_percent: float = Field(..., gt=0, le=100)
    start_date: date
    months: int = Field(..., ge=1, le=1200)
    lumpsum: float = Field(0.0, ge=0)
    lumpsum_rate_percent: Optional[float] = Field(
        None,
        gt=0,
        le=100,
        description="Annual rate for the lumpsum; defaults to the SIP rate.",
    )
    step_up: Optional[StepUp] = None

    @model_validator(mode="after")
    def ensure_something_invested(self) -> "ExpectedSIPRequest":
        if self.monthly_amount <= 0 and self.lumpsum <= 0:
            raise ValueError("monthly_amount or lumpsum must be greater than 0")
        return self


class HistoricalSIPRequest(BaseModel):
    """SIP replayed over an actual NAV series."""

    model_config = ConfigDict(extra="forbid")

    data: List[RawNavPoint]
    amount: float = Field(0.0, ge=0, description="Installment per period.")
    start_date: date
    end_date: date
    lumpsum: float = Field(0.0, ge=0)
    frequency: Frequency = "monthly"

    @model_validator(mode="after")
    def ensure_validity(self) -> "HistoricalSIPRequest":
        if self.start_date >= self.end_date:
            raise ValueError("end_date must be after start_date")
        if self.amount <= 0 and self.lumpsum <= 0:
            raise ValueError("amount or lumpsum must be greater than 0")
        return self


class SIPResult(BaseModel):
    mode: Literal["expected", "historical"]
    total_investment: float
    initial_lumpsum: float
    estimated_returns: float
    total_value: float
    absolute_return: float
    annualized_return: float
    xirr: Optional[float] = None
    total_units: float = 0.0
    end_nav: float = 0.0
    timeline: List[TimelinePoint] = Field(default_factory=list)
    cash_flows: List[CashFlow] = Field(default_factory=list)


class SIPPortfolioRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    maturity_date: date
    streams: List[ContributionStream] = Field(..., min_length=1)


class SIPStreamBreakdown(BaseModel):
    index: int
    monthly_amount: float
    months: int
    investment: float
    future_value: float
    returns: float
    step_up_rate_percent: float


class SIPPortfolioResult(BaseModel):
    total_investment: float
    estimated_returns: float
    total_value: float
    breakdown: List[SIPStreamBreakdown]


class SIPCompareRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    funds: List[NamedSeries] = Field(..., min_length=1)
    monthly_amount: float = Field(..., gt=0)
    lumpsum: float = Field(0.0, ge=0)
    period: Optional[Period] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class FundSIPComparison(BaseModel):
    scheme_code: int
    scheme_name: str
    total_investment: float
    total_value: float
    total_units: float
    end_nav: float
    absolute_return: float
    xirr: Optional[float] = None
    timeline: List[TimelinePoint] = Field(default_factory=list)


class SIPCompareResponse(BaseModel):
    funds: List[FundSIPComparison]
