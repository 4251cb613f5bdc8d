"""Data contracts for target-based SIP solving."""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fundcalc.schemas.sip import LumpsumEntry

TargetMode = Literal["amount_to_target", "time_to_target"]


class TargetSIPRequest(BaseModel):
    """Solve for the monthly SIP (fixed horizon) or the horizon (fixed SIP)."""

    model_config = ConfigDict(extra="forbid")

    mode: TargetMode
    target_amount: float = Field(..., gt=0)
    annual_rate_percent: float = Field(..., ge=0, le=100)
    start_date: Optional[date] = Field(None, description="First contribution; defaults to today.")
    months: Optional[int] = Field(None, ge=1, le=1200)
    monthly_amount: Optional[float] = Field(None, gt=0)
    lumpsums: List[LumpsumEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_mode_inputs(self) -> "TargetSIPRequest":
        if self.mode == "amount_to_target" and self.months is None:
            raise ValueError("months is required for amount_to_target")
        if self.mode == "time_to_target" and self.monthly_amount is None:
            raise ValueError("monthly_amount is required for time_to_target")
        return self


class TargetSIPResult(BaseModel):
    mode: TargetMode
    target_amount: float
    lumpsum_future_value: float
    monthly_amount: float
    months: Optional[int] = None
    years: Optional[float] = None
    total_investment: float
    total_returns: float
    found: bool
    annual_rate_percent: float
